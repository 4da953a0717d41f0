import pytest

VCF_HEADER = [
    "##fileformat=VCFv4.2",
    "##contig=<ID=1,length=1000000>",
    "##contig=<ID=2,length=1000000>",
    '##INFO=<ID=AF,Number=A,Type=Float,Description="Allele Frequency">',
    '##FORMAT=<ID=GT,Number=1,Type=String,Description="Genotype">',
]


def vcf_line(chrom, pos, ref, alt, af, genotypes):
    info = "." if af is None else f"AF={af}"
    return "\t".join([chrom, str(pos), ".", ref, alt, ".", "PASS", info, "GT"] + list(genotypes))


@pytest.fixture
def make_vcf(tmp_path):
    """Write a small VCF; rows are (chrom, pos, ref, alt, af, genotypes)."""
    def _make_vcf(rows, name="input.vcf", samples=("S1", "S2")):
        path = tmp_path / name
        columns = ["#CHROM", "POS", "ID", "REF", "ALT", "QUAL", "FILTER", "INFO", "FORMAT"]
        lines = VCF_HEADER + ["\t".join(columns + list(samples))]
        lines += [vcf_line(*row) for row in rows]
        path.write_text("\n".join(lines) + "\n")
        return str(path)
    return _make_vcf


@pytest.fixture
def example_rows():
    return [
        ("1", 100, "A", "G", 0.10, ("0/0", "0/1")),
        ("1", 120, "AT", "A", 0.30, ("0/1", "0/1")),     # indel
        ("1", 150, "C", "T", 0.12, ("0/1", "0/1")),     # close, similar AF
        ("1", 180, "G", "A,C", "0.5,0.1", ("1/2", "0/1")),    # multiallelic
        ("1", 5000, "T", "C", 0.13, ("1/1", "0/1")),    # far
        ("1", 5050, "T", "G", 0.14, ("1/1", "0/1")),    # same genotypes as 5000
        ("2", 100, "A", "C", None, ("0/0", "0/1")),     # new chromosome
        ("2", 200, "C", "G", 0.90, ("0|1", "1|1")),     # no AF to compare against
    ]
