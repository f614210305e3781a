import re

def normalize_phone_digits(value: str | None) -> str:
    """Reduce any Kazakh phone notation to 11 digits starting with 7."""
    if not value:
        return ""
    digits = re.sub(r"\D", "", value)
    if digits.startswith("8"):
        digits = "7" + digits[1:]
    if digits.startswith("007"):
        digits = "7" + digits[3:]
    if digits.startswith("07"):
        digits = "7" + digits[1:]
    if not digits.startswith("7"):
        digits = "7" + digits
    return digits[:11]

def normalize_phone(value: str | None) -> str:
    digits = normalize_phone_digits(value)
    return f"+{digits}" if digits else ""

def format_phone_for_display(digits: str | None) -> str:
    s = re.sub(r"\D", "", digits or "")
    if not s:
        return ""
    a, b, c, d, e = s[0:1], s[1:4], s[4:7], s[7:9], s[9:11]
    out = "+" + a
    if b:
        out += " (" + b
        if len(b) == 3:
            out += ")"
    if c:
        out += " " + c
    if d:
        out += "-" + d
    if e:
        out += "-" + e
    return out
