"""English/Hindi strings used by the API responses and the preview page."""

from __future__ import annotations

from idcard_portal.core.config import settings
from idcard_portal.schemas import SourceLabel

LANGUAGES = ("en", "hi")


def normalize_language(language: str | None) -> str:
    lang = (language or settings.DEFAULT_LANGUAGE or "en").strip().lower()
    return lang if lang in LANGUAGES else "en"


def txt(en: str, hi: str | None, language: str | None) -> str:
    if normalize_language(language) == "hi" and hi:
        return hi
    return en


# field -> (en, hi); order is the preview order
FIELD_LABELS: dict[str, tuple[str, str]] = {
    "purpose": ("Purpose of ID Card", "पहचान पत्र का उद्देश्य"),
    "department": ("Department", "विभाग"),
    "unit": ("Unit", "यूनिट"),
    "employee_name_en": ("Employee Name (English)", "कर्मचारी का नाम (अंग्रेज़ी)"),
    "employee_name_hi": ("Employee Name (Hindi)", "कर्मचारी का नाम (हिंदी)"),
    "employee_no": ("Employee No", "कर्मचारी संख्या"),
    "designation_en": ("Designation (English)", "पद (अंग्रेज़ी)"),
    "designation_hi": ("Designation (Hindi)", "पद (हिंदी)"),
    "date_of_appointment": ("Date of Appointment", "नियुक्ति की तारीख"),
    "date_of_birth": ("Date of Birth", "जन्म तिथि"),
    "nearest_rh": ("Nearest RH/HU", "निकटतम आरएच/एचयू"),
    "place_of_work": ("Place of Work", "कार्यस्थल"),
    "pay_level": ("Pay Level", "वेतन स्तर"),
    "email": ("Email", "ईमेल"),
    "mobile_number": ("Mobile Number", "मोबाइल नंबर"),
    "pin_code": ("Pin Code", "पिन कोड"),
    "district": ("District", "जिला"),
    "state": ("State", "राज्य"),
    "id_card_no": ("ID Card No", "पहचान पत्र संख्या"),
    "residential_address": ("Residential Address", "निवास पता"),
    "unique_identification_mark": ("Unique Identification Mark", "विशिष्ट पहचान चिह्न"),
    "office_location": ("Office Location", "कार्यालय स्थान"),
    "manager": ("Manager", "प्रबंधक"),
    "employee_type": ("Employee Type", "कर्मचारी प्रकार"),
    "gender": ("Gender", "लिंग"),
    "marital_status": ("Marital Status", "वैवाहिक स्थिति"),
    "blood_group": ("Blood Group", "रक्त समूह"),
    "emergency_contact": ("Emergency Contact", "आपातकालीन संपर्क"),
    "photo_url": ("Photo", "फोटो"),
    "notes": ("Notes", "टिप्पणियाँ"),
}

SOURCE_MESSAGES: dict[SourceLabel, tuple[str, str]] = {
    SourceLabel.PER_EMPLOYEE: (
        "Loaded your saved application (this device).",
        "आपका सहेजा गया आवेदन लोड किया गया (यह डिवाइस)।",
    ),
    SourceLabel.DRAFT: (
        "Showing your saved draft (local).",
        "आपका सहेजा गया ड्राफ्ट दिखाया जा रहा है (स्थानीय)।",
    ),
    SourceLabel.LAST_SUBMITTED: (
        "Loaded your last submitted application (local).",
        "आपका अंतिम जमा किया गया आवेदन लोड किया गया (स्थानीय)।",
    ),
    SourceLabel.EXAMPLE_FALLBACK: (
        "Could not fetch live data — showing example data.",
        "लाइव डेटा प्राप्त नहीं हो सका — उदाहरण डेटा दिखाया जा रहा है।",
    ),
}

MESSAGES: dict[str, tuple[str, str]] = {
    "draft_saved": ("Draft saved", "ड्राफ्ट सहेजा गया"),
    "draft_cleared": ("Draft removed", "ड्राफ्ट हटाया गया"),
    "saved": ("Saved.", "सहेजा गया।"),
    "submitting": ("Submitting…", "जमा किया जा रहा है…"),
    "submitted": ("Application submitted successfully!", "आवेदन सफलतापूर्वक जमा किया गया!"),
    "submit_failed": (
        "Submission failed. Your draft is safe, please try again.",
        "जमा करना विफल रहा। आपका ड्राफ्ट सुरक्षित है, कृपया पुनः प्रयास करें।",
    ),
    "submit_in_progress": ("A submission is already in progress.", "एक आवेदन पहले से जमा किया जा रहा है।"),
    "fix_errors": ("Please correct the highlighted fields.", "कृपया चिह्नित फ़ील्ड ठीक करें।"),
    "status": ("Status", "स्थिति"),
    "submitted_at": ("Submitted at", "जमा करने की तारीख"),
    "documents": ("Documents", "दस्तावेज़"),
    "no_documents": ("No documents uploaded", "कोई दस्तावेज़ अपलोड नहीं किया गया"),
    "greeting": ("Hi, {name}", "नमस्ते, {name}"),
    "password_updated": ("Password updated successfully!", "पासवर्ड सफलतापूर्वक अपडेट हो गया!"),
    "password_failed": ("Failed to update password", "पासवर्ड अपडेट करने में विफल"),
    "password_reset": ("Password reset successfully.", "पासवर्ड सफलतापूर्वक रीसेट हो गया।"),
    "registered": ("Registration successful.", "पंजीकरण सफल रहा।"),
    "register_failed": ("Registration failed.", "पंजीकरण विफल रहा।"),
    "login_failed": ("Invalid employee number or password.", "अमान्य कर्मचारी संख्या या पासवर्ड।"),
    "otp_sent": ("OTP sent.", "ओटीपी भेजा गया।"),
    "otp_invalid": ("Enter the 6-digit OTP.", "6 अंकों का ओटीपी दर्ज करें।"),
    "not_authenticated": ("Please log in.", "कृपया लॉग इन करें।"),
    "unexpected": ("Something went wrong.", "कुछ गलत हो गया।"),
}


def field_label(field: str, language: str | None) -> str:
    en, hi = FIELD_LABELS.get(field, (field, field))
    return txt(en, hi, language)


def source_message(source: SourceLabel, language: str | None) -> str:
    en, hi = SOURCE_MESSAGES[source]
    return txt(en, hi, language)


def message(key: str, language: str | None, **kwargs) -> str:
    en, hi = MESSAGES.get(key, (key, key))
    return txt(en, hi, language).format(**kwargs)


def get_language(lang: str | None = None) -> str:
    """FastAPI dependency: ``?lang=en|hi``."""
    return normalize_language(lang)
