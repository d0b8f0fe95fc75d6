"""Base contract enforcement utilities.

The require() function is the single enforcement mechanism for all contracts.
"""

from mdrelax.contracts.failure import ContractViolation


def require(condition: bool, message: str, error: type = ContractViolation) -> None:
    """Enforce a pipeline contract.

    Called at stage boundaries to verify the preceding stage produced the
    guaranteed invariants. Fail-fast: no recovery, no fallback.

    Parameters
    ----------
    condition : bool
        The invariant that must be true.
    message : str
        Error message explaining the violation.
    error : type, optional
        Exception class raised on violation (default ContractViolation).

    Examples
    --------
    >>> require(path.exists(), f"{path} was not produced", ExternalToolFailure)
    """
    if not condition:
        raise error(message)
