from __future__ import annotations

from functools import lru_cache

from email_validator import EmailNotValidError, validate_email

# Domains reserved for testing should not trigger DNS lookups.
_TEST_DOMAIN_ALLOWLIST = {
    "example.com",
    "example.org",
    "example.net",
}


@lru_cache(maxsize=256)
def _validate(candidate: str, check_deliverability: bool) -> str:
    info = validate_email(candidate, check_deliverability=check_deliverability)
    return info.normalized


def normalize_email(value: str, *, check_deliverability: bool = False) -> str:
    """Normaliza um e-mail de cliente ou de contato.

    Dominios de teste nunca consultam DNS, mesmo com `check_deliverability`.
    """
    candidate = (value or "").strip()
    if not candidate:
        raise ValueError("E-mail é obrigatório.")

    lowered = candidate.lower()
    domain = lowered.split("@", 1)[1] if "@" in lowered else ""
    if domain in _TEST_DOMAIN_ALLOWLIST:
        check_deliverability = False

    try:
        return _validate(lowered, check_deliverability)
    except EmailNotValidError as exc:
        raise ValueError(f"E-mail inválido: {exc}") from exc
