#!/usr/bin/env python3
"""
S3 Uploader

Run this script to upload a file or a directory tree to an S3 bucket.

Usage:
    python run.py report.pdf docs/report.pdf      # Upload one file
    python run.py ./site uploads/site             # Upload a directory tree
    python run.py ./site -r 5 -w 16               # 5 attempts, 16 workers
    python run.py ./site --dry-run                # List keys only
    python run.py ./site -j results.json          # Output JSON results
    python run.py --diagnose                      # Check the setup
"""

import sys
from s3_uploader.cli import main

if __name__ == "__main__":
    sys.exit(main())
