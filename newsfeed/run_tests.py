#!/usr/bin/env python3
"""
Test runner for the newsfeed backend
"""
import sys
import os
import subprocess
from pathlib import Path

def run_tests():
    """Run the suite against an in-memory database with rate limiting off"""

    root = Path(__file__).resolve().parent.parent

    env = os.environ.copy()
    env['ENVIRONMENT'] = 'testing'
    env['TESTING'] = 'true'
    env['RATE_LIMIT_ENABLED'] = 'false'
    env['TEST_DATABASE_URL'] = 'sqlite+aiosqlite:///:memory:'
    env['REDIS_URL'] = ''
    env['PYTHONPATH'] = str(root)

    cmd = [
        sys.executable, "-m", "pytest",
        "-v",
        "--cov=newsfeed",
        "--cov-report=html",
        "--cov-report=term",
        "-W", "ignore::DeprecationWarning",
        str(root / "newsfeed" / "tests"),
    ]

    # Extra pytest arguments, e.g. -k reactions
    if len(sys.argv) > 1:
        cmd.extend(sys.argv[1:])

    print(f"Running tests with command: {' '.join(cmd)}")
    print(f"Environment: {env.get('ENVIRONMENT')}")

    result = subprocess.run(cmd, env=env, cwd=root)

    if result.returncode == 0:
        print("\n✅ All tests passed!")
    else:
        print("\n❌ Tests failed!")

    return result.returncode

if __name__ == "__main__":
    sys.exit(run_tests())
