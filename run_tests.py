"""
Simple test runner script.
Run with: python run_tests.py [extra pytest args]

Runs every tests/test_*.py module through pytest.
"""

import subprocess
import sys

if __name__ == "__main__":
    result = subprocess.run(
        [
            sys.executable, "-m", "pytest",
            "-v",              # Verbose output
            "--tb=short",      # Short traceback format
            "tests/",
            *sys.argv[1:],
        ],
        cwd=".",
    )
    sys.exit(result.returncode)
