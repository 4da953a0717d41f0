#!/usr/bin/env python3

################################################################################
### Libraries
################################################################################
import argparse
import logging
import os
import re
import sys

from snp_reducer import ReduceConfig, reduce_coordinates
from vcf_snp_io import SNPSource, provenance_line, write_positions, write_selected

logger = logging.getLogger(__name__)

EPILOG = """Example:
    reduce_snps -I input.vcf.gz -O output.vcf.gz -d 1000 -f 0.05
"""

distance_re = re.compile(r"^[0-9]+$")
frequency_re = re.compile(r"^0\.[0-9]+$|^1\.0+$")


################################################################################
### Functions
################################################################################
#*******************************************************************************
# Argument parsing
#*******************************************************************************
def distance_type(value: str) -> int:
    if not distance_re.match(value):
        raise argparse.ArgumentTypeError(
            f"the value of -d (distance) must be a positive integer, got '{value}'")
    return int(value)


def frequency_type(value: str) -> str:
    """Validated frequency, kept as typed for the provenance header."""
    if not frequency_re.match(value):
        raise argparse.ArgumentTypeError(
            f"the value of -f (frequency) must be a decimal number between 0 and 1 "
            f"(use dot as decimal separator), got '{value}'")
    return value


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Reduce biallelic SNPs of a VCF, dropping SNPs redundant with the two "
                    "previously kept SNPs (same genotypes, or close and with similar allele frequency)",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-I", "--input", required=True,
                        help="Input file in .vcf or .vcf.gz format")
    parser.add_argument("-O", "--output", required=True,
                        help="Output VCF file (bgzipped and indexed if it ends with .gz)")
    parser.add_argument("-d", "--distance", type=distance_type, default=0,
                        help="Distance in base pairs (integer, default: 0)")
    parser.add_argument("-f", "--frequency", type=frequency_type, default="0.00",
                        help="Minimum allele frequency difference (decimal, default: 0.00)")
    parser.add_argument("--positions-out", default=None,
                        help="Optional TSV path to also write the kept CHROM/POS pairs")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Increase output verbosity (can be repeated)")
    return parser.parse_args(argv)


def setup_logging(verbosity: int) -> None:
    """Configure logging based on verbosity level."""
    log_levels = {0: logging.ERROR, 1: logging.WARNING, 2: logging.INFO, 3: logging.DEBUG}
    logging.basicConfig(
        format="[%(levelname)s] %(message)s",
        level=log_levels.get(min(verbosity, 3), logging.INFO),
    )


#*******************************************************************************
# Reporting
#*******************************************************************************
def kept_percentage(n_kept: int, n_snps: int) -> float:
    return 100.0 * n_kept / n_snps if n_snps else 0.0


def report(args: argparse.Namespace, config: ReduceConfig, source: SNPSource, n_kept: int) -> None:
    print(f"REPORT: {args.input} contains {source.n_records} variants. "
          f"Of these, {source.n_snps} are SNPs with only one ALT allele.")
    print(f"REPORT: distance threshold {config.distance} nucleotides, "
          f"frequency threshold {args.frequency}.")
    print(f"REPORT: {args.output} has {n_kept} SNPs, "
          f"{kept_percentage(n_kept, source.n_snps):g} % of the biallelic SNPs.")


################################################################################
### Main
################################################################################
def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose)

    if not os.path.isfile(args.input) or not os.access(args.input, os.R_OK):
        sys.stderr.write(f"[ERROR] Input file '{args.input}' does not exist or is not readable\n")
        return 2

    config = ReduceConfig(distance=args.distance, frequency=float(args.frequency))
    if config.distance != args.distance:
        logger.warning("Frequency threshold is 0, distance threshold forced to 0")

    print(f"INFO: Input file         : {args.input}")
    print(f"INFO: Output file        : {args.output}")
    print(f"INFO: Maximum distance   : {config.distance}")
    print(f"INFO: Minimum difference : {args.frequency}")

    source = SNPSource(args.input)
    created = []
    try:
        kept = list(reduce_coordinates(source, config))
        logger.info(f"Kept {len(kept)} of {source.n_snps} biallelic SNPs")
        # the VCF goes last, it is moved into place only once complete
        if args.positions_out:
            created.append(args.positions_out)
            write_positions(args.positions_out, kept)
        header_line = provenance_line(args.input, args.output, config.distance, args.frequency)
        write_selected(args.input, args.output, set(kept), header_line)
    except (OSError, ValueError) as e:
        for path in created:
            if os.path.exists(path):
                os.remove(path)
        sys.stderr.write(f"[ERROR] Failed to reduce '{args.input}': {e}\n")
        return 1

    report(args, config, source, len(kept))
    return 0


################################################################################
### Entrypoint
################################################################################
if __name__ == "__main__":
    sys.exit(main())
