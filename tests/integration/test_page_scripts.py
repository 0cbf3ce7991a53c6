from __future__ import annotations

import pytest
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright

from harrier.detection.dom import resolve_by_labels
from harrier.detection.scripts import FILL_FORM, PICK_LISTBOX_OPTION

LABELLED_FORM = """
<form>
  <div class="row"><label for="email-input">Email address</label><input id="email-input" type="email"></div>
  <div class="row"><label>Phone number <input name="tel" type="tel"></label></div>
  <div class="row"><span>LinkedIn profile</span><input name="li"></div>
</form>
"""

GENDER_RADIOS = """
<form>
  <fieldset>
    <legend>Gender</legend>
    <label><input type="radio" name="gender" value="m"> Male</label>
    <label><input type="radio" name="gender" value="f"> Female (she/her)</label>
    <label><input type="radio" name="gender" value="x"> Decline to self-identify</label>
  </fieldset>
</form>
"""


@pytest.fixture(scope="module")
def browser():
    with sync_playwright() as playwright:
        try:
            browser = playwright.chromium.launch(headless=True)
        except PlaywrightError as exc:
            pytest.skip(f"Chromium is not installed: {exc}")
        yield browser
        browser.close()


@pytest.fixture
def page(browser):
    page = browser.new_page()
    yield page
    page.close()


def fill(page, *, fields=(), text=(), choices=()) -> dict:
    return page.evaluate(FILL_FORM, {"fields": list(fields), "text": list(text), "choices": list(choices)})


def test_label_traversal_confidence_by_association(page) -> None:
    page.set_content(LABELLED_FORM)

    fields = {item.logical_name: item for item in resolve_by_labels(page, ["email", "phone", "linkedin"])}

    assert fields["email"].confidence == 1.0
    assert fields["email"].locator == "#email-input"
    assert fields["email"].kind == "email"
    assert fields["phone"].confidence == 0.95
    assert fields["phone"].locator == 'input[name="tel"]'
    assert fields["linkedin"].confidence == 0.7
    assert fields["linkedin"].locator == 'input[name="li"]'
    assert fields["linkedin"].visible_label == "LinkedIn profile"


def test_label_traversal_skips_claimed_inputs(page) -> None:
    page.set_content(LABELLED_FORM)

    fields = resolve_by_labels(page, ["email", "phone"], claimed_locators=["#email-input"])

    assert [item.logical_name for item in fields] == ["phone"]


def test_radio_answer_is_not_matched_inside_a_longer_word(page) -> None:
    page.set_content(GENDER_RADIOS)

    result = fill(page, choices=[{"name": "gender", "phrases": ["gender"], "answer": "Female"}])

    assert result["choices"] == [{"name": "gender", "ok": True, "reason": "", "option": "female (she/her)"}]
    assert page.eval_on_selector('input[value="f"]', "el => el.checked") is True
    assert page.eval_on_selector('input[value="m"]', "el => el.checked") is False


def test_select_prefers_exact_option_over_containing_option(page) -> None:
    page.set_content(
        """
        <select name="auth">
          <option value="">Select...</option>
          <option value="yes-sponsor">Yes, with sponsorship</option>
          <option value="yes">Yes</option>
          <option value="no">No</option>
        </select>
        """
    )

    result = fill(page, fields=[{"name": "work_authorization", "locator": 'select[name="auth"]', "value": "Yes"}])

    assert result["fields"] == [{"name": "work_authorization", "ok": True, "reason": ""}]
    assert page.eval_on_selector('select[name="auth"]', "el => el.value") == "yes"


def test_select_reports_when_no_option_matches(page) -> None:
    page.set_content('<select name="country"><option>Canada</option><option>Mexico</option></select>')

    result = fill(page, fields=[{"name": "location", "locator": 'select[name="country"]', "value": "Germany"}])

    assert result["fields"] == [{"name": "location", "ok": False, "reason": "no matching option"}]


def test_listbox_pick_prefers_whole_word_match(page) -> None:
    page.set_content(
        """
        <div role="listbox">
          <div role="option">Male</div>
          <div role="option">Female (she/her)</div>
          <div role="option">Decline to self-identify</div>
        </div>
        """
    )

    assert page.evaluate(PICK_LISTBOX_OPTION, {"answer": "Female"}) == "female (she/her)"
    assert page.evaluate(PICK_LISTBOX_OPTION, {"answer": "Male"}) == "male"


def test_answer_containing_option_as_word_still_matches(page) -> None:
    page.set_content('<div role="listbox"><div role="option">No</div><div role="option">Yes</div></div>')

    assert page.evaluate(PICK_LISTBOX_OPTION, {"answer": "No, I will not"}) == "no"


def test_assigned_values_fire_input_and_change_events(page) -> None:
    page.set_content('<form><input id="first" name="first"><textarea id="note"></textarea></form>')
    page.evaluate(
        """() => {
          window.seen = [];
          for (const el of document.querySelectorAll('input, textarea')) {
            for (const type of ['input', 'change', 'blur']) {
              el.addEventListener(type, () => window.seen.push(el.id + ':' + type));
            }
          }
        }"""
    )

    result = fill(
        page,
        fields=[
            {"name": "first_name", "locator": "#first", "value": "Ada"},
            {"name": "cover_letter", "locator": "#note", "value": "Hello"},
        ],
    )

    assert [item["ok"] for item in result["fields"]] == [True, True]
    assert page.input_value("#first") == "Ada"
    assert page.input_value("#note") == "Hello"
    assert page.evaluate("() => window.seen") == [
        "first:input",
        "first:change",
        "first:blur",
        "note:input",
        "note:change",
        "note:blur",
    ]


def test_missing_locator_is_reported_not_raised(page) -> None:
    page.set_content("<form><input name='email'></form>")

    result = fill(page, fields=[{"name": "phone", "locator": "#does-not-exist", "value": "555"}])

    assert result["fields"] == [{"name": "phone", "ok": False, "reason": "element not found"}]
