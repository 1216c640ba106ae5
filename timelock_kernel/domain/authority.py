"""
AuthorityCheck -- "does this invocation carry proof of authority from P?"

Responsibility:
    The registry never verifies signatures or credentials itself.  It asks
    an AuthorityCheck to confirm the current invocation is authorized by a
    principal, and reacts to pass/fail.

Architecture position:
    Kernel > Domain -- collaborator contract plus two small implementations.

Invariants enforced:
    - Fails closed: anything short of a positive confirmation raises
      UnauthorizedError.
    - Evaluated synchronously, before any state mutation.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

from timelock_kernel.exceptions import UnauthorizedError

Principal = str


class AuthorityCheck(ABC):
    """
    Collaborator contract for authorization.

    Contract:
        ``require_authorized(principal)`` returns None when the current
        invocation carries sufficient proof from ``principal`` and raises
        ``UnauthorizedError`` otherwise.
    """

    @abstractmethod
    def require_authorized(self, principal: Principal) -> None:
        ...


class InvocationAuthority(AuthorityCheck):
    """
    Authority scoped to the current invocation.

    The set of principals whose proof the current call carries lives in a
    ContextVar, so it is isolated per thread and per asyncio task, and
    vanishes when the ``authorize()`` block exits.

    Usage::

        authority = InvocationAuthority()
        with authority.authorize("admin"):
            registry.queue(b"op1", 60)
    """

    def __init__(self) -> None:
        self._proofs: ContextVar[frozenset[Principal]] = ContextVar(
            f"invocation_proofs_{id(self)}", default=frozenset()
        )

    @contextmanager
    def authorize(self, *principals: Principal) -> Iterator[None]:
        """Attach proof from ``principals`` for the duration of the block."""
        token = self._proofs.set(self._proofs.get() | frozenset(principals))
        try:
            yield
        finally:
            self._proofs.reset(token)

    def authorized_principals(self) -> frozenset[Principal]:
        return self._proofs.get()

    def require_authorized(self, principal: Principal) -> None:
        if principal not in self._proofs.get():
            raise UnauthorizedError(principal, "invocation carries no proof")


class AllowAllAuthority(AuthorityCheck):
    """Approves every principal.

    For test harnesses and trusted single-operator contexts only.
    """

    def require_authorized(self, principal: Principal) -> None:
        return None
