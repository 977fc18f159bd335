import subprocess
import sys

__BASE_CMD = [
    sys.executable,
    "-m",
    "pytest",
]
__INTEGRATION_TESTS = "./tests/integration/"
__UNIT_TESTS = "./tests/unit/"


def __run_process(cmd: list[str]) -> None:
    """Run a process with additional arguments."""
    # Allow passing additional arguments to pytest
    # sys.argv[0] is the script name
    extra_args = sys.argv[1:]

    try:
        subprocess.check_call(cmd + extra_args)
    except subprocess.CalledProcessError as e:
        sys.exit(e.returncode)


def coverage() -> None:
    """Run unit tests with coverage report."""
    cmd = [
        *__BASE_CMD,
        "--cov=workload_redeployer",
        "--cov-report=term-missing",
        __UNIT_TESTS,
    ]

    __run_process(cmd)


def integration() -> None:
    """Run integration tests against a K3S cluster (requires Docker)."""
    cmd = [
        *__BASE_CMD,
        __INTEGRATION_TESTS,
    ]

    __run_process(cmd)


def unit() -> None:
    """Run unit tests."""
    cmd = [
        *__BASE_CMD,
        __UNIT_TESTS,
    ]

    __run_process(cmd)
