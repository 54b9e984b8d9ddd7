"""Email allowlist matching used to gate signup and signin."""
import re
from typing import Iterable, List, Optional


def normalize_email(email: str) -> str:
    return email.strip().lower()


def normalize_domain(domain: str) -> str:
    return domain.strip().lower().lstrip(".")


def email_domain(email: str) -> Optional[str]:
    at = email.rfind("@")
    if at == -1 or at == len(email) - 1:
        return None
    return email[at + 1:].lower()


def parse_env_list(value: Optional[str]) -> List[str]:
    """Split a comma, semicolon or newline separated setting into entries."""
    if not value:
        return []
    return [v.strip() for v in re.split(r"[,;\n]", value) if v.strip()]


def check_env_allowlist(email: str, emails: Iterable[str], domains: Iterable[str]) -> bool:
    """
    True if email is listed exactly or its domain (or a parent domain) is listed.
    Empty lists deny everyone.
    """
    allowed_emails = {normalize_email(e) for e in emails}
    allowed_domains = [normalize_domain(d) for d in domains]
    if not allowed_emails and not allowed_domains:
        return False

    normalized = normalize_email(email)
    if normalized in allowed_emails:
        return True

    domain = email_domain(normalized)
    if not domain:
        return False
    domain = normalize_domain(domain)
    return any(domain == allowed or domain.endswith(f".{allowed}") for allowed in allowed_domains)
