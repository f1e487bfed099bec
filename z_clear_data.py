#!/usr/bin/env python3
"""
Script to reset a local Office Inventory checkout:
removes Python caches, the SQLite database in instance/ and the log files.
"""

import os
from pathlib import Path
import shutil


def _remove(paths, label):
    count = 0
    for path in paths:
        try:
            if path.is_dir():
                shutil.rmtree(path)
            else:
                path.unlink()
            print(f"   ✓ Removed: {path}")
            count += 1
        except OSError as e:
            print(f"   ✗ Failed to remove {path}: {e}")
    print(f"   Total {label} removed: {count}")
    return count


def clear_data():
    """Delete __pycache__ directories, instance/*.db and the log directory's *.log files"""
    root = Path(__file__).parent
    print("=== Cleaning Office Inventory data ===")
    print(f"Project directory: {root}")

    print("\n1. Removing __pycache__ directories...")
    pycache_count = _remove(list(root.rglob('__pycache__')), '__pycache__ directories')

    print("\n2. Removing database files...")
    db_count = _remove(list((root / 'instance').glob('*.db')), '.db files')

    print("\n3. Removing log files...")
    log_dir = Path(os.environ.get('LOG_DIR', root / 'logs'))
    log_count = _remove(list(log_dir.glob('*.log*')), 'log files')

    total_removed = pycache_count + db_count + log_count
    print("\n=== Cleanup Complete ===")
    print(f"Total items removed: {total_removed}")
    return total_removed


if __name__ == '__main__':
    clear_data()
