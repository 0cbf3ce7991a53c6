from __future__ import annotations

import os
import tempfile
from pathlib import Path

_TEST_DIR = Path(tempfile.mkdtemp(prefix="harrier-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DIR / 'harrier.db'}"
os.environ["DATA_DIR"] = str(_TEST_DIR)
os.environ["ARTIFACT_DIR"] = str(_TEST_DIR / "artifacts")
os.environ["APP_ENV"] = "test"
os.environ["OPENAI_API_KEY"] = ""
os.environ["LOCAL_LLM_ENABLED"] = "false"
os.environ["ASOCKS_API_KEY"] = ""

import pytest  # noqa: E402

from harrier.db import models  # noqa: E402,F401
from harrier.db.base import Base  # noqa: E402
from harrier.db.session import engine  # noqa: E402
from harrier.detection import scripts  # noqa: E402
from harrier.types import ApplicantProfile, ProfileLinks, QuestionnaireAnswers, ResumeArtifact  # noqa: E402


@pytest.fixture(autouse=True)
def reset_db() -> None:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


class FakeLocator:
    def __init__(self, page: "FakePage", selector: str):
        self.page = page
        self.selector = selector

    @property
    def first(self) -> "FakeLocator":
        return self

    def count(self) -> int:
        return 1 if self.selector in self.page.widgets else 0

    def click(self, **kwargs) -> None:
        self.page.widget_actions.append(("click", self.selector))

    def press_sequentially(self, text: str, **kwargs) -> None:
        self.page.widget_actions.append(("type", self.selector, text))

    def press(self, key: str) -> None:
        self.page.widget_actions.append(("press", self.selector, key))


class FakePage:
    """Stands in for a Playwright page; in-page scripts are answered from canned data."""

    def __init__(
        self,
        *,
        url: str = "https://jobs.ashbyhq.com/acme/123/application",
        html: str = "<form><input name='email'></form>",
        static: list[dict] | None = None,
        labelled: list[dict] | None = None,
        control_count: int = 5,
        blocker: str = "",
        buttons: list[str] | None = None,
        body_after_submit: str = "Thank you for applying!",
        unanswerable: set[str] | None = None,
        widgets: set[str] | None = None,
        listbox_options: list[str] | None = None,
        comboboxes: list[dict] | None = None,
    ):
        self.url = url
        self.html = html
        self.static = static or []
        self.labelled = labelled or []
        self.control_count = control_count
        self.blocker = blocker
        self.buttons = buttons if buttons is not None else ["Submit Application"]
        self.body_text = "Apply for Engineer"
        self.body_after_submit = body_after_submit
        self.unanswerable = unanswerable or set()
        self.widgets = widgets or set()
        self.listbox_options = listbox_options or []
        self.comboboxes = comboboxes or []
        self.calls: list[tuple[str, dict]] = []
        self.clicked: list[str] = []
        self.uploads: list[tuple[str, str]] = []
        self.widget_actions: list[tuple] = []
        self.screenshots: list[str] = []
        self.goto_error: Exception | None = None

    def goto(self, url: str, **kwargs) -> None:
        if self.goto_error is not None:
            raise self.goto_error
        self.url = url

    def wait_for_load_state(self, state: str, **kwargs) -> None:
        return None

    def wait_for_timeout(self, ms: int) -> None:
        return None

    def content(self) -> str:
        return self.html

    def inner_text(self, selector: str, **kwargs) -> str:
        return self.body_text

    def screenshot(self, path: str | None = None, **kwargs) -> bytes:
        if path:
            Path(path).write_bytes(b"\x89PNG")
            self.screenshots.append(path)
        return b"\x89PNG"

    def set_input_files(self, selector: str, files: str, **kwargs) -> None:
        self.uploads.append((selector, Path(files).read_bytes().decode("utf-8", "ignore")))

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self, selector)

    def evaluate(self, script: str, args: dict | None = None):
        args = args or {}
        if script is scripts.COUNT_FORM_CONTROLS:
            self.calls.append(("count", args))
            return self.control_count
        if script is scripts.DETECT_BLOCKER:
            self.calls.append(("blocker", args))
            return self.blocker
        if script is scripts.CLICK_BUTTON_BY_TEXT:
            self.calls.append(("click", args))
            return self._click(args["phrases"])
        if script is scripts.RESOLVE_STATIC:
            self.calls.append(("static", args))
            return self.static
        if script is scripts.LABEL_TRAVERSAL:
            self.calls.append(("labels", args))
            wanted = {target["name"] for target in args["targets"]}
            return [item for item in self.labelled if item["name"] in wanted]
        if script is scripts.FILL_FORM:
            self.calls.append(("fill", args))
            return {group: self._answer(args.get(group, [])) for group in ("fields", "text", "choices")}
        if script is scripts.PICK_LISTBOX_OPTION:
            self.calls.append(("listbox", args))
            answer = args["answer"].lower()
            return next((option for option in self.listbox_options if option.lower().startswith(answer)), "")
        if script is scripts.FIND_COMBOBOX_QUESTIONS:
            self.calls.append(("comboboxes", args))
            return self.comboboxes
        raise AssertionError("unexpected script evaluated")

    def called(self, name: str) -> list[dict]:
        return [args for call, args in self.calls if call == name]

    def _click(self, phrases: list[str]) -> str:
        for phrase in phrases:
            for label in self.buttons:
                if phrase in label.lower():
                    self.clicked.append(label)
                    if "submit" in label.lower():
                        self.body_text = self.body_after_submit
                    return label.lower()
        return ""

    def _answer(self, items: list[dict]) -> list[dict]:
        return [
            {
                "name": item["name"],
                "ok": item["name"] not in self.unanswerable,
                "reason": "element not found" if item["name"] in self.unanswerable else "",
            }
            for item in items
        ]


def static_match(name: str, locator: str, kind: str = "text") -> dict:
    return {"name": name, "selector": locator, "locator": locator, "label": "", "kind": kind}


ASHBY_STATIC = [
    static_match("full_name", "#_systemfield_name"),
    static_match("email", "#_systemfield_email", "email"),
    static_match("phone", 'input[type="tel"]', "tel"),
    static_match("location", "#_systemfield_location"),
    static_match("linkedin", 'input[name*="linkedin"]', "url"),
    static_match("resume", "#_systemfield_resume", "file"),
]


@pytest.fixture
def profile() -> ApplicantProfile:
    return ApplicantProfile(
        full_name="Ada Lovelace",
        email="ada@example.com",
        phone="+1 555 0100",
        location="New York, NY",
        links=ProfileLinks(linkedin="https://linkedin.com/in/ada", github="https://github.com/ada"),
        current_company="Analytical Engines",
        university="University of London",
        answers=QuestionnaireAnswers(
            work_authorized=True,
            sponsorship_required=False,
            years_of_experience="5",
            why_this_role="I like building payment systems.",
            gender="Female",
            veteran_status="I am not a protected veteran",
        ),
    )


@pytest.fixture
def profile_with_resume(profile: ApplicantProfile) -> ApplicantProfile:
    return profile.model_copy(update={"resume": ResumeArtifact(url="https://files.example.com/ada.pdf")})


class FakePipeline:
    """Returns queued ApplyResults, or raises queued exceptions, in order."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.runs: list[tuple] = []

    def run(self, target, profile):
        self.runs.append((target, profile))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome.model_copy()


class FakeLedger:
    def __init__(self):
        self.debits: list[tuple[int, int, str]] = []

    def debit(self, user_id: int, amount: int, reason: str) -> None:
        self.debits.append((user_id, amount, reason))


class FakeNotifier:
    def __init__(self):
        self.batches = []
        self.reviews = []

    def batch_summary(self, notification) -> None:
        self.batches.append(notification)

    def manual_review(self, notification) -> None:
        self.reviews.append(notification)


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()
