"""In-page JavaScript evaluated through ``page.evaluate``.

Every snippet is a single arrow function taking one JSON argument and
returning plain JSON, so callers never hold element handles across
client-side re-renders.
"""

from __future__ import annotations

HELPERS = r"""
  const norm = (text) => (text || '').replace(/\s+/g, ' ').trim().toLowerCase();
  const isVisible = (el) => {
    if (!el) return false;
    const style = window.getComputedStyle(el);
    if (style.display === 'none' || style.visibility === 'hidden') return false;
    const rect = el.getBoundingClientRect();
    return rect.width > 0 && rect.height > 0;
  };
  const SKIPPED_TYPES = ['hidden', 'submit', 'button', 'image', 'reset', 'checkbox', 'radio'];
  const fieldKind = (el) => {
    const tag = el.tagName.toLowerCase();
    if (tag === 'textarea') return 'textarea';
    if (tag === 'select') return 'select';
    const type = (el.getAttribute('type') || 'text').toLowerCase();
    if (['file', 'email', 'tel', 'url'].includes(type)) return type;
    return 'text';
  };
  const isFillable = (el) => {
    if (!el || el.disabled) return false;
    const tag = el.tagName.toLowerCase();
    if (!['input', 'textarea', 'select'].includes(tag)) return false;
    const type = (el.getAttribute('type') || 'text').toLowerCase();
    if (tag === 'input' && SKIPPED_TYPES.includes(type)) return false;
    return type === 'file' || isVisible(el);
  };
  const labelFor = (el) => {
    if (el.id) {
      const explicit = Array.from(document.querySelectorAll('label')).find((l) => l.htmlFor === el.id);
      if (explicit) return explicit;
    }
    return el.closest('label');
  };
  const labelText = (el) => {
    const label = labelFor(el);
    if (label) return label.innerText.trim();
    const labelledBy = el.getAttribute('aria-labelledby');
    if (labelledBy) {
      const ref = document.getElementById(labelledBy.split(' ')[0]);
      if (ref) return ref.innerText.trim();
    }
    return (el.getAttribute('aria-label') || el.getAttribute('placeholder') || '').trim();
  };
  const SAFE_ID = /^[A-Za-z_][\w-]*$/;
  const cssPath = (el) => {
    if (el.id && SAFE_ID.test(el.id) && document.querySelectorAll('#' + el.id).length === 1) {
      return '#' + el.id;
    }
    const tag = el.tagName.toLowerCase();
    const name = el.getAttribute('name');
    if (name) {
      const byName = tag + '[name="' + name.replace(/"/g, '\\"') + '"]';
      if (document.querySelectorAll(byName).length === 1) return byName;
    }
    const parts = [];
    let node = el;
    while (node && node.nodeType === 1 && node !== document.body) {
      if (node !== el && node.id && SAFE_ID.test(node.id) && document.querySelectorAll('#' + node.id).length === 1) {
        parts.unshift('#' + node.id);
        return parts.join(' > ');
      }
      let index = 1;
      let sibling = node.previousElementSibling;
      while (sibling) {
        if (sibling.tagName === node.tagName) index += 1;
        sibling = sibling.previousElementSibling;
      }
      parts.unshift(node.tagName.toLowerCase() + ':nth-of-type(' + index + ')');
      node = node.parentElement;
    }
    parts.unshift('body');
    return parts.join(' > ');
  };
  const position = (el) => {
    const rect = el.getBoundingClientRect();
    const width = Math.max(document.documentElement.scrollWidth, 1);
    const height = Math.max(document.documentElement.scrollHeight, 1);
    const pct = (value, total) => Math.min(100, Math.max(0, Math.round((value / total) * 1000) / 10));
    return {
      x: pct(rect.left + window.scrollX + rect.width / 2, width),
      y: pct(rect.top + window.scrollY + rect.height / 2, height),
    };
  };
  const describe = (el) => ({
    locator: cssPath(el),
    label: labelText(el),
    kind: fieldKind(el),
    position: position(el),
  });
  const containsWord = (haystack, needle) => {
    const escaped = needle.replace(/[.*+?^${}()|[\]\\]/g, '\\$&');
    return new RegExp('(^|[^a-z0-9])' + escaped + '($|[^a-z0-9])').test(haystack);
  };
  // 3 exact, 2 option contains the answer as a word, 1 answer contains the option as a word.
  const scoreOption = (text, answer) => {
    const t = norm(text);
    const a = norm(answer);
    if (!t || !a) return 0;
    if (t === a) return 3;
    if (containsWord(t, a)) return 2;
    if (t.length > 1 && containsWord(a, t)) return 1;
    return 0;
  };
  const setNativeValue = (el, value) => {
    const proto = el.tagName === 'TEXTAREA'
      ? HTMLTextAreaElement.prototype
      : el.tagName === 'SELECT' ? HTMLSelectElement.prototype : HTMLInputElement.prototype;
    const descriptor = Object.getOwnPropertyDescriptor(proto, 'value');
    if (descriptor && descriptor.set) {
      descriptor.set.call(el, value);
    } else {
      el.value = value;
    }
    el.dispatchEvent(new Event('input', { bubbles: true }));
    el.dispatchEvent(new Event('change', { bubbles: true }));
    el.dispatchEvent(new Event('blur', { bubbles: true }));
  };
  const selectOption = (el, answer) => {
    let best = null;
    let bestScore = 0;
    for (const option of Array.from(el.options)) {
      if (!option.value && !option.text.trim()) continue;
      const score = Math.max(scoreOption(option.text, answer), scoreOption(option.value, answer));
      if (score > bestScore) {
        best = option;
        bestScore = score;
      }
    }
    if (!best) return '';
    setNativeValue(el, best.value);
    return best.text.trim();
  };
"""


def _script(body: str) -> str:
    return "(args) => {\n" + HELPERS + body + "\n}"


COUNT_FORM_CONTROLS = _script(
    r"""
  return Array.from(document.querySelectorAll('input, textarea, select')).filter(isFillable).length;
"""
)

DETECT_BLOCKER = _script(
    r"""
  const challengeFrame = Array.from(document.querySelectorAll('iframe')).some((frame) => {
    const src = (frame.src || '').toLowerCase();
    if (src.includes('size=invisible') || !isVisible(frame)) return false;
    return src.includes('recaptcha') || src.includes('hcaptcha') || src.includes('challenges.cloudflare.com');
  });
  if (challengeFrame) return 'captcha';
  const widget = Array.from(document.querySelectorAll('.g-recaptcha, .h-captcha, .cf-turnstile, #challenge-form'))
    .find((node) => node.getAttribute('data-size') !== 'invisible' && isVisible(node));
  if (widget) return 'captcha';
  const title = norm(document.title);
  const text = norm(document.body ? document.body.innerText : '').slice(0, 5000);
  if (title.includes('just a moment') || text.includes('verify you are human') || text.includes('are you a robot')) {
    return 'human verification';
  }
  if (title.includes('access denied') || text.startsWith('access denied') || text.includes('you have been blocked')) {
    return 'access denied';
  }
  return '';
"""
)

CLICK_BUTTON_BY_TEXT = _script(
    r"""
  if (args.scroll) window.scrollTo(0, document.body.scrollHeight);
  const nodes = Array.from(document.querySelectorAll(
    'button, a, [role="button"], input[type="submit"], input[type="button"]'
  )).filter((node) => isVisible(node) && !node.disabled && node.getAttribute('aria-disabled') !== 'true');
  const textOf = (node) => norm(node.innerText || node.value || node.getAttribute('aria-label'));
  for (const phrase of args.phrases) {
    const exact = nodes.find((node) => textOf(node) === phrase);
    const match = exact || nodes.find((node) => textOf(node).includes(phrase) && textOf(node).length < 60);
    if (match) {
      match.scrollIntoView({ block: 'center' });
      match.click();
      return textOf(match);
    }
  }
  return '';
"""
)

RESOLVE_STATIC = _script(
    r"""
  const found = [];
  const claimed = new Set();
  for (const candidate of args.candidates) {
    for (const selector of candidate.selectors) {
      let nodes = [];
      try {
        nodes = Array.from(document.querySelectorAll(selector));
      } catch (error) {
        continue;
      }
      const el = nodes.find((node) => !claimed.has(node) && isFillable(node));
      if (!el) continue;
      claimed.add(el);
      found.push({ name: candidate.name, selector, ...describe(el) });
      break;
    }
  }
  return found;
"""
)

LABEL_TRAVERSAL = _script(
    r"""
  const controlsIn = (root) => Array.from(root.querySelectorAll('input, textarea, select')).filter(isFillable);
  const claimed = new Set();
  for (const locator of args.claimed || []) {
    try {
      const node = document.querySelector(locator);
      if (node) claimed.add(node);
    } catch (error) {
      // stale locator from another tier
    }
  }
  const free = (node) => node && !claimed.has(node);
  const labels = Array.from(document.querySelectorAll(
    'label, legend, [class*="label" i], [class*="question" i], span, p'
  )).filter((node) => {
    const text = norm(node.innerText);
    return text && text.length < 200 && isVisible(node);
  });

  const found = [];
  for (const target of args.targets) {
    let best = null;
    for (const label of labels) {
      const text = norm(label.innerText);
      if (!target.phrases.some((phrase) => text.includes(phrase))) continue;
      let el = null;
      let confidence = 0;
      let method = '';
      if (label.tagName === 'LABEL' && label.htmlFor) {
        const byFor = document.getElementById(label.htmlFor);
        if (free(byFor) && isFillable(byFor)) {
          el = byFor;
          confidence = 1.0;
          method = 'for';
        }
      }
      if (!el) {
        const nested = controlsIn(label).find(free);
        if (nested) {
          el = nested;
          confidence = 0.95;
          method = 'nested';
        }
      }
      if (!el) {
        const container = label.closest('div, fieldset, section, li');
        const scoped = container ? controlsIn(container) : [];
        if (scoped.length && scoped.length <= 4 && scoped.find(free)) {
          el = scoped.find(free);
          method = 'container';
        } else {
          let sibling = label.nextElementSibling;
          let hops = 0;
          while (sibling && hops < 5 && !el) {
            if (sibling.matches('input, textarea, select') && isFillable(sibling) && free(sibling)) {
              el = sibling;
            } else {
              el = controlsIn(sibling).find(free) || null;
            }
            sibling = sibling.nextElementSibling;
            hops += 1;
          }
          method = 'sibling';
        }
        if (el) confidence = 0.7;
      }
      if (el && (!best || confidence > best.confidence)) {
        best = { el, confidence, method, label: label.innerText.trim() };
      }
      if (best && best.confidence === 1.0) break;
    }
    if (best) {
      claimed.add(best.el);
      found.push({
        name: target.name,
        confidence: best.confidence,
        method: best.method,
        ...describe(best.el),
        label: best.label,
      });
    }
  }
  return found;
"""
)

FILL_FORM = _script(
    r"""
  const OPTION_SELECTOR =
    'input[type="radio"], input[type="checkbox"], button, [role="radio"], [role="option"], [role="button"], select';
  const TEXT_SELECTOR = 'textarea, input[type="text"], input:not([type])';
  const optionText = (el) => {
    if (el.matches('input')) {
      const label = labelFor(el);
      if (label) return label.innerText;
      return el.value || (el.parentElement ? el.parentElement.innerText : '');
    }
    return el.innerText || el.getAttribute('aria-label') || '';
  };
  const findContainer = (phrases, selector) => {
    let best = null;
    let bestLength = Infinity;
    const nodes = document.querySelectorAll('fieldset, div, li, section, [role="group"], [role="radiogroup"]');
    for (const node of nodes) {
      const text = norm(node.textContent);
      if (text.length >= bestLength) continue;
      if (!phrases.some((phrase) => text.includes(phrase))) continue;
      if (!node.querySelector(selector)) continue;
      best = node;
      bestLength = text.length;
    }
    return best;
  };

  const fields = [];
  for (const item of args.fields || []) {
    let el = null;
    try {
      el = document.querySelector(item.locator);
    } catch (error) {
      el = null;
    }
    if (!el) {
      fields.push({ name: item.name, ok: false, reason: 'element not found' });
      continue;
    }
    if (el.tagName === 'SELECT') {
      const picked = selectOption(el, item.value);
      fields.push({ name: item.name, ok: Boolean(picked), reason: picked ? '' : 'no matching option' });
      continue;
    }
    setNativeValue(el, item.value);
    fields.push({ name: item.name, ok: true, reason: '' });
  }

  const text = [];
  for (const question of args.text || []) {
    const container = findContainer(question.phrases, TEXT_SELECTOR);
    const el = container
      ? Array.from(container.querySelectorAll(TEXT_SELECTOR)).find((node) => isVisible(node) && !node.value)
      : null;
    if (!el) {
      text.push({ name: question.name, ok: false, reason: 'question not found' });
      continue;
    }
    setNativeValue(el, question.answer);
    text.push({ name: question.name, ok: true, reason: '' });
  }

  const choices = [];
  for (const question of args.choices || []) {
    const container = findContainer(question.phrases, OPTION_SELECTOR);
    if (!container) {
      choices.push({ name: question.name, ok: false, reason: 'question not found', option: '' });
      continue;
    }
    const select = container.querySelector('select');
    if (select) {
      const picked = selectOption(select, question.answer);
      if (picked) {
        choices.push({ name: question.name, ok: true, reason: '', option: norm(picked) });
        continue;
      }
    }
    let best = null;
    let bestScore = 0;
    for (const option of container.querySelectorAll(OPTION_SELECTOR)) {
      if (option.tagName === 'SELECT') continue;
      const score = scoreOption(optionText(option), question.answer);
      if (score > bestScore) {
        best = option;
        bestScore = score;
      }
    }
    if (!best) {
      choices.push({ name: question.name, ok: false, reason: 'no matching option', option: '' });
      continue;
    }
    if (best.matches('input')) {
      (labelFor(best) || best).click();
      if (!best.checked) {
        best.checked = true;
        best.dispatchEvent(new Event('change', { bubbles: true }));
      }
    } else {
      best.click();
    }
    choices.push({ name: question.name, ok: true, reason: '', option: norm(optionText(best)) });
  }

  return { fields, text, choices };
"""
)

PICK_LISTBOX_OPTION = _script(
    r"""
  const options = Array.from(document.querySelectorAll('[role="option"]')).filter(isVisible);
  let best = null;
  let bestScore = 0;
  for (const option of options) {
    const score = scoreOption(option.innerText, args.answer);
    if (score > bestScore) {
      best = option;
      bestScore = score;
    }
  }
  if (!best) return '';
  best.click();
  return norm(best.innerText);
"""
)

FIND_COMBOBOX_QUESTIONS = _script(
    r"""
  return Array.from(document.querySelectorAll('input[role="combobox"]'))
    .filter(isVisible)
    .map((el) => {
      let label = labelText(el);
      if (!label) {
        const container = el.closest('div, fieldset, li');
        const node = container ? container.querySelector('label, legend') : null;
        label = node ? node.innerText.trim() : '';
      }
      return { locator: cssPath(el), label };
    });
"""
)
