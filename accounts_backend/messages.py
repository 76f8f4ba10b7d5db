"""
Localized success messages.
"""

from __future__ import annotations

DEFAULT_LOCALE = "en"

CATALOGS: dict[str, dict[str, str]] = {
    "en": {
        "register_success": "Registration successful",
        "login_success": "Login successful",
        "profile_created": "Profile created successfully!",
        "file_uploaded": "File uploaded successfully",
    },
    "th": {
        "register_success": "ลงทะเบียนสำเร็จ",
        "login_success": "เข้าสู่ระบบสำเร็จ",
        "profile_created": "สร้างโปรไฟล์สำเร็จ",
        "file_uploaded": "อัปโหลดไฟล์สำเร็จ",
    },
}


def message(key: str, locale: str = DEFAULT_LOCALE) -> str:
    catalog = CATALOGS.get(locale, CATALOGS[DEFAULT_LOCALE])
    return catalog.get(key, CATALOGS[DEFAULT_LOCALE][key])
