#!/usr/bin/env python3

################################################################################
### Libraries
################################################################################
import logging
import os
import tempfile
from datetime import datetime
from typing import Iterable, Iterator, Optional, Set, Tuple

import pysam

from snp_reducer import SNPRecord

logger = logging.getLogger(__name__)

TOOL_NAME = "reduced_SNPs"


################################################################################
### Functions
################################################################################
def choose_mode_from_ext(path: str) -> str:
    return "wz" if path.endswith(".gz") else "w"


def is_biallelic_snp(record: pysam.VariantRecord) -> bool:
    """True for records with one REF base and exactly one single-base ALT.
    Symbolic, spanning deletion (*) and missing (.) ALTs are not SNPs.
    """
    alleles = record.alleles
    if alleles is None or len(alleles) != 2:
        return False
    ref, alt = alleles
    if len(ref) != 1 or len(alt) != 1:
        return False
    return alt not in ("*", ".") and ref.upper() != alt.upper()


def get_allele_frequency(record: pysam.VariantRecord) -> Optional[float]:
    """INFO/AF of a biallelic record, None when missing."""
    value = record.info.get("AF")
    # Number=A fields come back as a tuple
    if isinstance(value, tuple):
        value = value[0] if value else None
    if value is None:
        return None
    # single precision in BCF, keep the 6 significant digits bcftools prints
    return float(f"{float(value):.6g}")


def format_genotype(call) -> str:
    """Render a sample GT the way bcftools query %GT does (0/1, 1|0, ./.)."""
    gt = call.get("GT")
    if not gt:
        return "."
    sep = "|" if call.phased else "/"
    return sep.join("." if allele is None else str(allele) for allele in gt)


def to_snp_record(record: pysam.VariantRecord) -> SNPRecord:
    genotype = "\t".join(format_genotype(call) for call in record.samples.values())
    return SNPRecord(
        chrom=record.chrom,
        pos=record.pos,
        af=get_allele_frequency(record),
        genotype=genotype,
    )


def provenance_line(input_vcf: str, output_vcf: str, distance: int, frequency: str,
                    when: Optional[datetime] = None) -> str:
    """Header line describing the run, added just before #CHROM.
    frequency is written as given on the command line.
    """
    when = when or datetime.now()
    return (
        f"##{TOOL_NAME}={TOOL_NAME} -I {input_vcf} -O {output_vcf} "
        f"-d {distance} -f {frequency}; Date= {when:%Y-%m-%d %H:%M:%S}"
    )


################################################################################
### Objects
################################################################################
#*******************************************************************************
# Record source
#*******************************************************************************
class SNPSource:
    """Iterate the biallelic SNPs of a VCF as SNPRecord, in file order.
    Keeps count of every record seen and of the SNPs yielded.
    Each iteration re-reads the file and resets the counts.
    """
    def __init__(self, vcf_path: str):
        self.vcf_path = vcf_path
        self.n_records = 0
        self.n_snps = 0

    def __iter__(self) -> Iterator[SNPRecord]:
        self.n_records = 0
        self.n_snps = 0
        with pysam.VariantFile(self.vcf_path) as vf:
            for record in vf:
                self.n_records += 1
                if not is_biallelic_snp(record):
                    continue
                self.n_snps += 1
                yield to_snp_record(record)
        logger.debug(f"{self.vcf_path}: {self.n_records} records, {self.n_snps} biallelic SNPs")


#*******************************************************************************
# Record sink
#*******************************************************************************
def write_selected(input_vcf: str, output_vcf: str, coordinates: Set[Tuple[str, int]],
                   header_line: str) -> int:
    """Copy records of input_vcf found at coordinates to output_vcf.

    Records are written verbatim, in input order, under the input header plus
    header_line. The output goes to a temporary file next to output_vcf and is
    moved into place only once complete. bgzipped outputs (.gz) get a tabix index.

    Returns
    -------
    int
        Number of records written
    """
    out_dir = os.path.dirname(os.path.abspath(output_vcf))
    suffix = ".vcf.gz" if output_vcf.endswith(".gz") else ".vcf"
    fd, tmp_path = tempfile.mkstemp(prefix=".reduce_snps.", suffix=suffix, dir=out_dir)
    os.close(fd)

    tmp_index = tmp_path + ".tbi"
    leftovers = [tmp_path, tmp_index]
    written = 0
    try:
        with pysam.VariantFile(input_vcf) as vf_in:
            header = vf_in.header.copy()
            header.add_line(header_line)
            with pysam.VariantFile(tmp_path, choose_mode_from_ext(output_vcf), header=header) as vf_out:
                for record in vf_in:
                    if (record.chrom, record.pos) in coordinates:
                        vf_out.write(record)
                        written += 1
        # index before the rename, the .tbi does not depend on the file name
        if output_vcf.endswith(".gz"):
            pysam.tabix_index(tmp_path, preset="vcf", force=True)
            os.replace(tmp_index, output_vcf + ".tbi")
            leftovers.append(output_vcf + ".tbi")
        os.replace(tmp_path, output_vcf)
    except BaseException:
        for path in leftovers:
            if os.path.exists(path):
                os.remove(path)
        raise

    logger.info(f"Wrote {written} records to {output_vcf}")
    return written


def write_positions(path: str, coordinates: Iterable[Tuple[str, int]]) -> None:
    """Write kept coordinates as CHROM<TAB>POS lines."""
    with open(path, "w") as fo:
        for chrom, pos in coordinates:
            fo.write(f"{chrom}\t{pos}\n")
