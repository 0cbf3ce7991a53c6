from __future__ import annotations

from dataclasses import dataclass

from harrier.types import FieldKind


@dataclass(frozen=True, slots=True)
class SelectorEntry:
    selectors: tuple[str, ...]
    kind: FieldKind
    priority: int


SelectorTable = dict[str, SelectorEntry]


def _entry(kind: FieldKind, priority: int, *selectors: str) -> SelectorEntry:
    return SelectorEntry(selectors=tuple(selectors), kind=kind, priority=priority)


ASHBY_SELECTORS: SelectorTable = {
    "full_name": _entry(
        "text",
        10,
        "#_systemfield_name",
        'input[name="name"]',
        'input[name="full_name"]',
        'input[id*="fullName"]',
        'input[placeholder*="Full name"]',
        'input[placeholder*="Your name"]',
    ),
    "first_name": _entry(
        "text",
        10,
        'input[name="firstName"]',
        'input[name="first_name"]',
        'input[id*="firstName"]',
        'input[placeholder*="First name"]',
        'input[aria-label*="First name"]',
    ),
    "email": _entry(
        "email",
        10,
        "#_systemfield_email",
        'input[type="email"]',
        'input[name="email"]',
        'input[id*="email"]',
        'input[placeholder*="email"]',
        'input[aria-label*="Email"]',
    ),
    "last_name": _entry(
        "text",
        9,
        'input[name="lastName"]',
        'input[name="last_name"]',
        'input[id*="lastName"]',
        'input[placeholder*="Last name"]',
        'input[aria-label*="Last name"]',
    ),
    "resume": _entry(
        "file",
        9,
        "#_systemfield_resume",
        'input[type="file"][name*="resume"]',
        'input[type="file"][id*="resume"]',
        'input[type="file"][aria-label*="Resume"]',
        'input[type="file"][accept*="pdf"]',
        'input[type="file"]',
    ),
    "phone": _entry(
        "tel",
        8,
        'input[type="tel"]',
        'input[name="phone"]',
        'input[name="phoneNumber"]',
        'input[id*="phone"]',
        'input[placeholder*="phone"]',
        'input[aria-label*="Phone"]',
    ),
    "location": _entry(
        "text",
        7,
        "#_systemfield_location",
        'input[name="location"]',
        'input[name="city"]',
        'input[id*="location"]',
        'input[placeholder*="location"]',
        'input[placeholder*="City"]',
        'input[aria-label*="Location"]',
    ),
    "linkedin": _entry(
        "url",
        6,
        'input[name*="linkedin"]',
        'input[id*="linkedin"]',
        'input[placeholder*="LinkedIn"]',
        'input[aria-label*="LinkedIn"]',
    ),
    "current_company": _entry(
        "text",
        6,
        'input[name*="company"]',
        'input[name*="employer"]',
        'input[id*="company"]',
        'input[placeholder*="Company"]',
        'input[placeholder*="Current employer"]',
        'input[aria-label*="Company"]',
    ),
    "years_of_experience": _entry(
        "text",
        6,
        'input[name*="experience"]',
        'input[name*="years"]',
        'input[id*="experience"]',
        'input[placeholder*="years of experience"]',
        'input[placeholder*="Years"]',
        'select[name*="experience"]',
    ),
    "github": _entry(
        "url",
        5,
        'input[name*="github"]',
        'input[id*="github"]',
        'input[placeholder*="GitHub"]',
        'input[aria-label*="GitHub"]',
    ),
    "twitter": _entry(
        "url",
        5,
        'input[name*="twitter"]',
        'input[id*="twitter"]',
        'input[placeholder*="Twitter"]',
        'input[aria-label*="Twitter"]',
        'input[placeholder*="X profile"]',
    ),
    "portfolio": _entry(
        "url",
        5,
        'input[name*="portfolio"]',
        'input[name*="website"]',
        'input[id*="portfolio"]',
        'input[placeholder*="Portfolio"]',
        'input[placeholder*="Website"]',
    ),
    "work_authorization": _entry(
        "select",
        5,
        'select[name*="authorization"]',
        'select[name*="work_auth"]',
        'select[id*="authorization"]',
        'input[name*="authorization"]',
    ),
    "university": _entry(
        "text",
        5,
        'input[name*="university"]',
        'input[name*="school"]',
        'input[name*="college"]',
        'input[id*="university"]',
        'input[placeholder*="University"]',
        'input[placeholder*="School"]',
        'input[aria-label*="University"]',
    ),
    "sponsorship_required": _entry(
        "select",
        5,
        'select[name*="sponsorship"]',
        'input[name*="sponsorship"]',
        'input[id*="sponsorship"]',
    ),
    "cover_letter": _entry(
        "textarea",
        4,
        'textarea[name*="cover"]',
        'textarea[id*="cover"]',
        'textarea[placeholder*="cover letter"]',
        'textarea[aria-label*="Cover letter"]',
        'textarea[name*="message"]',
    ),
    "how_did_you_hear": _entry(
        "select",
        3,
        'select[name*="hear"]',
        'select[name*="source"]',
        'select[id*="referral"]',
        'input[name*="hear"]',
        'input[placeholder*="How did you hear"]',
    ),
}

GREENHOUSE_SELECTORS: SelectorTable = {
    "first_name": _entry(
        "text",
        10,
        "#first_name",
        'input[name="job_application[first_name]"]',
        'input[autocomplete="given-name"]',
    ),
    "email": _entry(
        "email",
        10,
        "#email",
        'input[name="job_application[email]"]',
        'input[type="email"]',
        'input[autocomplete="email"]',
    ),
    "last_name": _entry(
        "text",
        9,
        "#last_name",
        'input[name="job_application[last_name]"]',
        'input[autocomplete="family-name"]',
    ),
    "resume": _entry(
        "file",
        9,
        "#resume",
        'input[name="job_application[resume]"]',
        'input[type="file"][accept*="pdf"]',
        'input[type="file"]',
    ),
    "phone": _entry(
        "tel",
        8,
        "#phone",
        'input[name="job_application[phone]"]',
        'input[type="tel"]',
        'input[autocomplete="tel"]',
    ),
    "location": _entry(
        "text",
        7,
        "#candidate-location",
        'input[name="job_application[location]"]',
        'input[placeholder*="Current location"]',
    ),
    "linkedin": _entry(
        "url",
        6,
        'input[name*="linkedin"]',
        'input[id*="linkedin_url"]',
        'input[aria-label*="LinkedIn"]',
    ),
    "portfolio": _entry(
        "url",
        5,
        'input[aria-label*="Website"]',
        'input[name*="website"]',
    ),
    "cover_letter": _entry(
        "textarea",
        4,
        "#cover_letter_text",
        'textarea[id="cover_letter"]',
        'textarea[name="job_application[cover_letter]"]',
    ),
    "how_did_you_hear": _entry(
        "text",
        3,
        'input[aria-label*="How did you hear"]',
    ),
}

LEVER_SELECTORS: SelectorTable = {
    "full_name": _entry("text", 10, 'input[name="name"]', 'input[data-qa="name"]'),
    "email": _entry("email", 10, 'input[name="email"]', 'input[data-qa="email"]', 'input[type="email"]'),
    "resume": _entry("file", 9, 'input[name="resume"]', 'input[data-qa="resume"]', 'input[type="file"]'),
    "phone": _entry("tel", 8, 'input[name="phone"]', 'input[data-qa="phone"]', 'input[type="tel"]'),
    "location": _entry("text", 7, 'input[name="location"]', 'input[data-qa="location-input"]'),
    "current_company": _entry("text", 6, 'input[name="org"]', 'input[data-qa="org"]'),
    "linkedin": _entry("url", 6, 'input[name="urls[LinkedIn]"]', 'input[placeholder*="LinkedIn"]'),
    "github": _entry("url", 5, 'input[name="urls[GitHub]"]', 'input[placeholder*="GitHub"]'),
    "twitter": _entry("url", 5, 'input[name="urls[Twitter]"]'),
    "portfolio": _entry("url", 5, 'input[name="urls[Portfolio]"]', 'input[name="urls[Other]"]'),
    "cover_letter": _entry(
        "textarea",
        4,
        "#additional-information",
        'textarea[name="comments"]',
        'textarea[data-qa="cover-letter"]',
    ),
}

WORKABLE_SELECTORS: SelectorTable = {
    "first_name": _entry(
        "text", 10, 'input[name="candidate[firstname]"]', 'input[name="firstname"]', "#candidate_firstname"
    ),
    "email": _entry(
        "email",
        10,
        'input[name="candidate[email]"]',
        'input[name="email"]',
        "#candidate_email",
        'input[type="email"]',
    ),
    "last_name": _entry(
        "text", 9, 'input[name="candidate[lastname]"]', 'input[name="lastname"]', "#candidate_lastname"
    ),
    "resume": _entry("file", 9, 'input[name="resume"]', "#candidate_resume", 'input[type="file"]'),
    "phone": _entry(
        "tel", 8, 'input[name="candidate[phone]"]', 'input[name="phone"]', "#candidate_phone", 'input[type="tel"]'
    ),
    "location": _entry("text", 7, 'input[name="candidate[address]"]', 'input[name="address"]'),
    "linkedin": _entry("url", 6, 'input[name="candidate[social_linkedin]"]'),
    "github": _entry("url", 5, 'input[name="candidate[social_github]"]'),
    "cover_letter": _entry(
        "textarea",
        4,
        'textarea[name="candidate[cover_letter]"]',
        'textarea[name="cover_letter"]',
        "#candidate_cover_letter",
    ),
}

TEAMTAILOR_SELECTORS: SelectorTable = {
    "full_name": _entry("text", 10, 'input[name="name"]', 'input[placeholder*="Full name"]'),
    "email": _entry("email", 10, 'input[name="email"]', 'input[type="email"]'),
    "resume": _entry("file", 9, 'input[name="resume"]', 'input[type="file"][accept*="pdf"]', 'input[type="file"]'),
    "phone": _entry("tel", 8, 'input[name="phone"]', 'input[type="tel"]'),
    "linkedin": _entry("url", 6, 'input[name="linkedin"]', 'input[placeholder*="LinkedIn"]'),
    "cover_letter": _entry("textarea", 4, 'textarea[name="message"]', 'textarea[name="cover_letter"]'),
}

LINKEDIN_SELECTORS: SelectorTable = {
    "phone": _entry("tel", 8, 'input[id*="phoneNumber"]', 'input[type="tel"]'),
}


def merge_tables(*tables: SelectorTable) -> SelectorTable:
    """Union of selector lists per field, first table's kind and priority win."""
    merged: dict[str, SelectorEntry] = {}
    for table in tables:
        for name, entry in table.items():
            existing = merged.get(name)
            if existing is None:
                merged[name] = entry
                continue
            selectors = list(existing.selectors)
            for selector in entry.selectors:
                if selector not in selectors:
                    selectors.append(selector)
            merged[name] = SelectorEntry(
                selectors=tuple(selectors),
                kind=existing.kind,
                priority=max(existing.priority, entry.priority),
            )
    return merged


GENERIC_SELECTORS: SelectorTable = merge_tables(
    ASHBY_SELECTORS,
    GREENHOUSE_SELECTORS,
    LEVER_SELECTORS,
    WORKABLE_SELECTORS,
    TEAMTAILOR_SELECTORS,
    LINKEDIN_SELECTORS,
)

PLATFORM_SELECTORS: dict[str, SelectorTable] = {
    "ashby": ASHBY_SELECTORS,
    "greenhouse": GREENHOUSE_SELECTORS,
    "lever": LEVER_SELECTORS,
    "workable": WORKABLE_SELECTORS,
    "generic": GENERIC_SELECTORS,
}


def selector_table(platform: str) -> SelectorTable:
    return PLATFORM_SELECTORS.get(platform, GENERIC_SELECTORS)


def ordered_entries(platform: str) -> list[tuple[str, SelectorEntry]]:
    """Entries sorted by priority, highest first; ties keep table order."""
    table = selector_table(platform)
    return sorted(table.items(), key=lambda item: -item[1].priority)
