#!/usr/bin/env python3
"""
Main execution module for the Telegram undelete migration tool
"""

from tg_undelete.cli.commands import main

if __name__ == "__main__":
    main()
