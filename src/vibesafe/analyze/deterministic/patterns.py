from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from ...constants import Severity
from .entropy import EntropyGate, is_high_entropy


@dataclass(frozen=True)
class SecretPattern:
    """A registered secret-shape detector.

    Structural patterns (``entropy_gate is None``) are pure shape matches.
    Entropy-gated patterns additionally require the candidate to pass the
    gate after the regex has enforced exact length and charset.
    """

    id: str
    name: str
    severity: Severity
    regex: re.Pattern
    message: str
    recommendation: str
    entropy_gate: Optional[EntropyGate] = None

    @property
    def requires_entropy(self) -> bool:
        return self.entropy_gate is not None

    def accepts(self, candidate: str) -> bool:
        if self.entropy_gate is None:
            return True
        return is_high_entropy(candidate, self.entropy_gate)

    def finditer(self, content: str) -> Iterator[re.Match]:
        return self.regex.finditer(content)


# Boundaries are lookarounds so a candidate one character too long (or short) never matches.
_AWS_SECRET_CHARSET = r"A-Za-z0-9/+="
# A leading "=" separates a name from its value (KEY=<secret>), so it does not extend the run.
_AWS_SECRET_BEFORE = r"A-Za-z0-9/+"

SECRET_PATTERNS: List[SecretPattern] = [
    SecretPattern(
        id="SEC-AWS-AKID",
        name="AWS Access Key ID",
        severity=Severity.HIGH,
        regex=re.compile(r"(?<![A-Za-z0-9])AKIA[A-Z2-7]{16}(?![A-Za-z0-9])"),
        message="AWS access key ID detected",
        recommendation="Deactivate and rotate the key in IAM; load credentials from the environment",
    ),
    SecretPattern(
        id="SEC-GITHUB",
        name="GitHub Token",
        severity=Severity.HIGH,
        regex=re.compile(r"(?<![A-Za-z0-9_])gh[pousr]_[A-Za-z0-9]{36}(?![A-Za-z0-9_])"),
        message="GitHub token detected",
        recommendation="Revoke the token and store it as a repository or CI secret",
    ),
    SecretPattern(
        id="SEC-STRIPE-LIVE",
        name="Stripe Live Secret Key",
        severity=Severity.CRITICAL,
        regex=re.compile(r"(?<![A-Za-z0-9_])sk_live_[0-9a-zA-Z]{24,99}(?![A-Za-z0-9_])"),
        message="Stripe live secret key detected",
        recommendation="Roll the key in the Stripe dashboard and use a secrets manager",
    ),
    SecretPattern(
        id="SEC-STRIPE-TEST",
        name="Stripe Test Secret Key",
        severity=Severity.MEDIUM,
        regex=re.compile(r"(?<![A-Za-z0-9_])sk_test_[0-9a-zA-Z]{24,99}(?![A-Za-z0-9_])"),
        message="Stripe test secret key detected",
        recommendation="Keep test keys out of source control as well",
    ),
    SecretPattern(
        id="SEC-SLACK",
        name="Slack Token",
        severity=Severity.HIGH,
        regex=re.compile(r"(?<![A-Za-z0-9])xox[abposr]-[0-9A-Za-z]{10,48}(?:-[0-9A-Za-z]{10,48}){0,3}"),
        message="Slack token detected",
        recommendation="Revoke the token in the Slack admin console",
    ),
    SecretPattern(
        id="SEC-GOOGLE-API",
        name="Google API Key",
        severity=Severity.HIGH,
        regex=re.compile(r"(?<![A-Za-z0-9_-])AIza[0-9A-Za-z_-]{35}(?![A-Za-z0-9_-])"),
        message="Google API key detected",
        recommendation="Restrict or regenerate the key in the Google Cloud console",
    ),
    SecretPattern(
        id="SEC-PRIVATE-KEY",
        name="Private Key",
        severity=Severity.CRITICAL,
        regex=re.compile(r"-----BEGIN (?:RSA |EC |DSA |OPENSSH |PGP |ENCRYPTED )?PRIVATE KEY(?: BLOCK)?-----"),
        message="Private key material detected",
        recommendation="Remove the key from the repository and issue a new key pair",
    ),
    SecretPattern(
        id="SEC-AWS-SECRET",
        name="AWS Secret Access Key",
        severity=Severity.CRITICAL,
        regex=re.compile(
            rf"(?<![{_AWS_SECRET_BEFORE}])[{_AWS_SECRET_CHARSET}]{{40}}(?![{_AWS_SECRET_CHARSET}])"
        ),
        message="Possible AWS secret access key (high-entropy 40-character string)",
        recommendation="Rotate the secret key and load it from a secrets manager",
        entropy_gate=EntropyGate(min_distinct_chars=10, min_shannon_bits=4.0),
    ),
]


def get_pattern(name_or_id: str) -> SecretPattern:
    for pattern in SECRET_PATTERNS:
        if pattern.name == name_or_id or pattern.id == name_or_id:
            return pattern
    raise KeyError(name_or_id)


def match_candidate(candidate: str) -> List[Tuple[bool, str, Severity]]:
    """Evaluate one candidate string against every registered pattern.

    Returns ``(is_match, pattern_name, base_severity)`` per pattern, in
    registration order. A match must cover the whole candidate.
    """
    results: List[Tuple[bool, str, Severity]] = []
    for pattern in SECRET_PATTERNS:
        match = pattern.regex.fullmatch(candidate)
        is_match = bool(match) and pattern.accepts(candidate)
        results.append((is_match, pattern.name, pattern.severity))
    return results
