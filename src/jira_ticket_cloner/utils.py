"""
Utility functions for the Jira ticket cloner.
"""

from __future__ import annotations

import logging
import os
import re
import subprocess
from subprocess import CompletedProcess

LOG_FILE = "clone.log"


class PassError(Exception):
    """Base class for pass-related errors."""


class InvalidPassPathError(PassError):
    """Raised when the pass path does not exist in the password store."""


class PassphraseRequiredError(PassError):
    """Raised when a GPG passphrase is required for the pass utility."""


def setup_logging(*, verbose: bool = False) -> None:
    """Configure logging for a clone run."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(), logging.FileHandler(LOG_FILE, mode="a")],
    )


def _validate_pass_path(pass_path: str) -> None:
    if not re.fullmatch(r"(?:[A-Za-z0-9_-]+)(?:/[A-Za-z0-9_-]+)*", pass_path):
        msg = f"Invalid pass path: {pass_path}"
        raise ValueError(msg)


def _run_pass(pass_path: str, passphrase: str | None = None) -> CompletedProcess[str]:
    if passphrase is None:
        return subprocess.run(["pass", pass_path], capture_output=True, text=True, check=True)  # noqa: S603, S607
    env = os.environ.copy() | {"PASSWORD_STORE_GPG_OPTS": "--pinentry-mode=loopback --passphrase-fd 0"}
    return subprocess.run(  # noqa: S603
        ["pass", pass_path],  # noqa: S607
        input=passphrase,
        capture_output=True,
        text=True,
        check=True,
        env=env,
    )


def _describe_failure(pass_path: str, error: subprocess.CalledProcessError, *, with_passphrase: bool = False) -> str:
    how = " with passphrase" if with_passphrase else ""
    return (
        f"Failed to get value from pass at '{pass_path}'{how}.\n"
        f"Output: {error.stdout.strip()}\n"
        f"Error: {error.stderr.strip()}\n"
        f"Return code: {error.returncode}"
    )


def get_pass_value(pass_path: str) -> str:
    """Get value from pass utility at specified path.

    Raises:
        ValueError: If pass_path is not a valid pass path
        InvalidPassPathError: If nothing is stored at pass_path
        PassphraseRequiredError: If the GPG passphrase is needed and cannot be read
        PassError: For any other pass failure
    """
    _validate_pass_path(pass_path)

    try:
        result = _run_pass(pass_path)
    except FileNotFoundError as e:
        msg = "The pass utility is not installed"
        raise PassError(msg) from e
    except subprocess.CalledProcessError as e:
        stderr = e.stderr.lower()
        if e.returncode == 1 and "not in the password store" in stderr:
            msg = f"Pass path '{pass_path}' not found or invalid."
            raise InvalidPassPathError(msg) from e
        if not (e.returncode == 2 and "gpg" in stderr and "public key decryption failed" in stderr):
            raise PassError(_describe_failure(pass_path, e)) from e

        # The GPG key needs its passphrase. This fails in non-interactive sessions.
        try:
            passphrase = input("Enter passphrase for GPG key used by pass: ")
        except EOFError as eof:
            msg = "Passphrase input was interrupted. Please run the command in an interactive session."
            raise PassphraseRequiredError(msg) from eof
        try:
            result = _run_pass(pass_path, passphrase)
        except subprocess.CalledProcessError as retry_error:
            raise PassphraseRequiredError(
                _describe_failure(pass_path, retry_error, with_passphrase=True)
            ) from retry_error

    return result.stdout.strip()
