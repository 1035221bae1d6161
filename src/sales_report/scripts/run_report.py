#!/usr/bin/env python3
"""Generate the monthly sales report once and print the result as JSON."""

import argparse
import json
import logging
import sys

from dotenv import load_dotenv

from ..config import ReportConfig, configure_logging
from ..pipeline import MonthlySalesReportPipeline

logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--log-level", default=None, help="Override the root log level (e.g. DEBUG)"
    )
    args = parser.parse_args(argv)

    load_dotenv()
    configure_logging(args.log_level)

    config = ReportConfig.from_env()
    logger.info("Running report with config: %s", config.to_dict())

    result = MonthlySalesReportPipeline(config).run()
    print(json.dumps(result.to_dict(), indent=2))
    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main())
