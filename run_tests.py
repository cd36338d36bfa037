#!/usr/bin/env python
"""
Test runner script for the InCampus project.
Runs the Django test suite with the test settings and optional coverage.
"""

import os
import sys
import argparse
import subprocess
from datetime import datetime

APPS = ['users', 'friends', 'notifications']


def parse_args():
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(description='Run InCampus tests')
    parser.add_argument('--app', choices=APPS, help='Specific app to test')
    parser.add_argument('--test', help='Specific test to run (e.g., SuggestionEngineTests.test_invalid_limits)')
    parser.add_argument('--coverage', action='store_true', help='Generate coverage report')
    parser.add_argument('--html', action='store_true', help='Generate HTML coverage report')
    parser.add_argument('--verbosity', type=int, default=1, help='Verbosity level (0-3)')
    parser.add_argument('--keepdb', action='store_true', help='Preserve test database between runs')
    return parser.parse_args()


def build_command(args):
    cmd = [sys.executable, 'manage.py', 'test']

    if args.app:
        label = f"{args.app}.tests"
        if args.test:
            label += f".{args.test}"
        cmd.append(label)
    elif args.test:
        print("--test needs --app")
        sys.exit(2)

    cmd.extend(['--verbosity', str(args.verbosity)])
    if args.keepdb:
        cmd.append('--keepdb')

    if args.coverage:
        cmd = [
            'coverage', 'run',
            f"--source={','.join(APPS + ['incampus'])}",
            '--omit=*/migrations/*,*/tests.py,manage.py',
        ] + cmd[1:]
    return cmd


def run_tests(args):
    """Run the tests with the given arguments"""
    print("=" * 80)
    print(f"InCampus Test Runner - {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print("=" * 80)

    os.environ['DJANGO_SETTINGS_MODULE'] = 'incampus.test_settings'

    cmd = build_command(args)
    print(f"Running command: {' '.join(cmd)}")
    print("-" * 80)
    result = subprocess.run(cmd)

    if args.coverage and result.returncode == 0:
        print("\n" + "=" * 80)
        print("COVERAGE REPORT")
        print("=" * 80)

        subprocess.run(['coverage', 'report'])

        if args.html:
            subprocess.run(['coverage', 'html'])
            print("\nHTML coverage report generated in htmlcov/ directory")

    return result.returncode


def main():
    args = parse_args()
    sys.exit(run_tests(args))


if __name__ == '__main__':
    main()
