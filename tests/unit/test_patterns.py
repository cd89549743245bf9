from __future__ import annotations

import pytest

from vibesafe.analyze.deterministic.patterns import SECRET_PATTERNS, get_pattern, match_candidate
from vibesafe.constants import Severity


def _matched(candidate: str) -> list[str]:
    return [name for is_match, name, _ in match_candidate(candidate) if is_match]


def test_pattern_ids_are_unique() -> None:
    ids = [p.id for p in SECRET_PATTERNS]
    assert len(ids) == len(set(ids))


def test_only_aws_secret_is_entropy_gated() -> None:
    gated = [p.name for p in SECRET_PATTERNS if p.requires_entropy]
    assert gated == ["AWS Secret Access Key"]


def test_get_pattern_by_name_and_id() -> None:
    assert get_pattern("SEC-AWS-AKID").name == "AWS Access Key ID"
    assert get_pattern("Private Key").severity == Severity.CRITICAL
    with pytest.raises(KeyError):
        get_pattern("nope")


def test_access_key_id_matches(aws_key_id: str) -> None:
    assert _matched(aws_key_id) == ["AWS Access Key ID"]


@pytest.mark.parametrize("position", range(4, 20))
@pytest.mark.parametrize("bad_char", ["0", "1"])
def test_access_key_id_rejects_digits_outside_base32(aws_key_id: str, position: int, bad_char: str) -> None:
    mutated = aws_key_id[:position] + bad_char + aws_key_id[position + 1 :]
    assert _matched(mutated) == []


def test_access_key_id_length_is_exact(aws_key_id: str) -> None:
    assert _matched(aws_key_id[:-1]) == []
    assert _matched(aws_key_id + "A") == []


def test_secret_key_matches_diverse_string(aws_secret: str) -> None:
    assert len(aws_secret) == 40
    assert _matched(aws_secret) == ["AWS Secret Access Key"]


@pytest.mark.parametrize("candidate", ["A" * 40, "ab" * 20, "/+" * 20])
def test_secret_key_rejects_low_diversity(candidate: str) -> None:
    assert _matched(candidate) == []


def test_secret_key_length_is_exact(aws_secret: str) -> None:
    assert _matched(aws_secret[:-1]) == []
    assert _matched(aws_secret + "Q") == []


def test_structural_shapes() -> None:
    github = "gh" + "p_" + "a1B2c3D4e5F6g7H8i9J0k1L2m3N4o5P6q7R8"
    stripe_live = "sk_" + "live_" + "4eC39HqLyjWDarjtT1zdp7dc"
    google = "AI" + "za" + "SyD-9tSrke72PouQMnMX-a7eZSW0jkFMBWY"
    pem = "-----BEGIN RSA " + "PRIVATE KEY-----"
    assert _matched(github) == ["GitHub Token"]
    assert _matched(stripe_live) == ["Stripe Live Secret Key"]
    assert _matched(google) == ["Google API Key"]
    assert _matched(pem) == ["Private Key"]


def test_match_candidate_reports_every_pattern_in_order() -> None:
    results = match_candidate("nothing to see")
    assert [name for _, name, _ in results] == [p.name for p in SECRET_PATTERNS]
    assert all(not is_match for is_match, _, _ in results)


def test_secret_key_found_after_unspaced_equals(aws_secret: str) -> None:
    pattern = get_pattern("SEC-AWS-SECRET")
    matches = [m.group(0) for m in pattern.finditer(f"AWS_SECRET_ACCESS_KEY={aws_secret}")]
    assert matches == [aws_secret]
