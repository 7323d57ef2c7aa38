# mailtrust/verifier/domain_age.py
# Deterministic stand-in for a WHOIS age lookup: the bucket is derived from a
# 32-bit string hash of the domain, so a domain always lands in the same bucket.

AGE_NEW = "New (<30 days)"
AGE_RECENT = "Recent (1-6 months)"
AGE_ESTABLISHED = "Established (6-12 months)"
AGE_MATURE = "Mature (1-5 years)"
AGE_OLD = "Old (5+ years)"

AGE_LABELS = (AGE_NEW, AGE_RECENT, AGE_ESTABLISHED, AGE_MATURE, AGE_OLD)

AGE_PENALTIES = {
    AGE_NEW: 15,
    AGE_RECENT: 5,
}


def string_hash(value: str) -> int:
    """hash = hash * 31 + UTF-16 code unit, wrapped to a signed 32-bit integer."""
    data = value.encode("utf-16-le", "surrogatepass")
    h = 0
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + unit) & 0xFFFFFFFF
    if h & 0x80000000:
        h -= 0x100000000
    return h


def estimate_age(domain: str) -> str:
    return AGE_LABELS[abs(string_hash(domain)) % len(AGE_LABELS)]


def age_penalty(label: str) -> int:
    return AGE_PENALTIES.get(label, 0)
