"""Two-tier verification of a stale candidate against the authority."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any

from txsweep.domain.model import VerdictSource

if TYPE_CHECKING:
    from txsweep.domain.model import VerificationTarget
    from txsweep.domain.ports.authority import AuthorityClient

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AuthorityVerdict:
    """What the authority said about one record, with the evidence behind it."""

    exists: bool
    source: VerdictSource
    evidence: dict[str, Any] = field(default_factory=dict)

    @property
    def reason(self) -> str:
        return "Found in Sectigo" if self.exists else "Not found in Sectigo"


async def verify_candidate(
    authority: AuthorityClient,
    target: VerificationTarget,
) -> AuthorityVerdict:
    """Ask the primary signal first and only fall back when it says no.

    ``VerificationError`` from either call propagates unchanged.
    """

    if await authority.verify_exists(target.account_ref, target.subject_ref):
        return AuthorityVerdict(
            exists=True,
            source=VerdictSource.PRIMARY,
            evidence={"listdomains": "present"},
        )

    last_status = await authority.get_last_status(target.account_ref, target.subject_ref)
    if last_status is None:
        return AuthorityVerdict(
            exists=False,
            source=VerdictSource.FALLBACK,
            evidence={"listdomains": "absent", "last_order": None},
        )

    evidence: dict[str, Any] = {
        "listdomains": "absent",
        "last_order": {
            "order_number": last_status.order_number,
            "status_code": last_status.status_code,
            "status_desc": last_status.status_desc,
        },
    }
    if last_status.issued:
        log.info("Found via GETLASTORDER: %s", target.subject_ref)
    return AuthorityVerdict(
        exists=last_status.issued,
        source=VerdictSource.FALLBACK,
        evidence=evidence,
    )
