# mailtrust/verifier/provider_profiles.py
from typing import Optional

# Well-known mailbox providers that earn a small trust boost
LEGIT_PROVIDERS = {
    "gmail.com": "gmail",
    "outlook.com": "microsoft",
    "hotmail.com": "microsoft",
    "yahoo.com": "yahoo",
    "icloud.com": "apple",
    "protonmail.com": "protonmail",
    "aol.com": "aol",
    "zoho.com": "zoho",
    "mail.com": "mail.com",
    "yandex.com": "yandex",
    "tutanota.com": "tutanota",
}


def identify_provider(domain: str) -> Optional[str]:
    if not domain:
        return None
    return LEGIT_PROVIDERS.get(domain.lower())


def is_legit_provider(domain: str) -> bool:
    return identify_provider(domain) is not None
