#!/usr/bin/env python3
"""
Object Store Diagnostics

Run this script to check a store's connector configuration, endpoint
reachability and basic filesystem operations.

Usage:
    python run.py s3a://bucket/                  # Diagnose a bucket
    python run.py -c store.json s3a://bucket/    # Use a config file
    python run.py -D fs.s3a.endpoint=... URI     # Override an option
    python run.py -q s3a://bucket/               # Quiet mode (summary only)
    python run.py -j report.json s3a://bucket/   # Output JSON report
    python run.py --no-connect s3a://bucket/     # DNS lookups only
"""

import sys
from storediag.cli import main

if __name__ == "__main__":
    sys.exit(main())
