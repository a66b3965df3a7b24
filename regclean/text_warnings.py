"""
Quality warnings for cleaned regulation text.

Each check looks for one class of problem an editor should review before
publishing (local file links, auto-generated lists, broken article
numbering...). Messages are in Icelandic, the language of the editors.
"""

import re
from typing import Callable, List, Optional

import structlog

from regclean.config import Settings
from regclean.config import settings as default_settings
from regclean.consts import INLINE_SELF_CLOSING_ELMS
from regclean.models import Angst, TextWarning, ValidationMode
from regclean.utils.dom import Element, parse_html, start_tag

logger = structlog.get_logger(__name__)

MAX_SAMPLES = 3

# code -> (singular, plural) message templates
MESSAGES = {
    "fsImages": ('{n} mynd/tengill með "file:///" slóð', '{n} myndir/tenglar með "file:///" slóðir'),
    "localUrls": ("{n} slóð sem er ekki fullgilt URL", "{n} slóðir sem eru ekki fullgild URL"),
    "insecureLinks": ("{n} tengill með óöruggu/gamaldags HTTP://", "{n} tenglar með óöruggum/gamaldags HTTP://"),
    "noAltImages": ('{n} mynd vantar "alt" texta', '{n} myndir vantar "alt" texta'),
    "h1Titles": ("Fann H1 fyrirsögn í textanum", "{n} stk. H1 fyrirsagnir fundust"),
    "preBlocks": ("Fann {n} PRE (ASCII-layout) blokk", "{n} PRE (ASCII-layout) blokkir fundust"),
    "autoGeneratedLists": (
        '{n} "auto-generated" listi þarf yfirlestur',
        '{n} "auto-generated" listar þurfa yfirlestur',
    ),
    "cfEmailMarkers": ("{n} spam-varið netfang vantar", "{n} spam-varin netföng vantar"),
    "articleNumbersWeird": ("Númerun greina er ekki samfelld", "Númerun greina er ekki samfelld"),
    "weirdArticleTitles": ("{n} greinatitill byrjar ekki á tölu", "{n} greinatitlar byrja ekki á tölu"),
    "nonRootArticleTitles": (
        "{n} greinatitill er innan í töflu eða lista",
        "{n} greinatitlar eru innan í töflum eða listum",
    ),
    "nonRootChapterTitles": (
        "{n} kaflatitill er innan í töflu eða lista",
        "{n} kaflatitlar eru innan í töflum eða listum",
    ),
    "nonRootSectionTitles": (
        "{n} hlutatitill er innan í töflu eða lista",
        "{n} hlutatitlar eru innan í töflum eða listum",
    ),
    "inlineAppendix": ("Fann viðauka í textanum", "{n} viðaukar fundust í textanum"),
    "legacyIndenters": ("{n} Tab-inndráttur fannst", "{n} Tab-indrættir fundust"),
    "nonSpaceLegacyIndenters": (
        "Tab-inndráttur má bara innihalda bil (öðrum táknum verður eytt)",
        "Tab-inndráttur má bara innihalda bil (öðrum táknum verður eytt)",
    ),
    "hasMarginLeft": (
        "{n} málsgrein með vinstri-spássíu (margin-left)",
        "{n} málsgreinar með vinstri-spássíu (margin-left)",
    ),
    "nonEmTitleContent": (
        'Kafla- og greinatitlar mega bara innihalda eitt samfellt skáletrað "nafn"',
        'Kafla- og greinatitlar mega bara innihalda eitt samfellt skáletrað "nafn"',
    ),
}

_SAFE_LINK_PREFIXES = ("https://", "http://", "mailto:", "file:///")


def message(code: str, count: int) -> str:
    singular, plural = MESSAGES[code]
    return (singular if count == 1 else plural).format(n=count)


def _is_article_title(elm: Element) -> bool:
    return elm.tag == "h3" and elm.has_class("article__title") and not elm.has_class("article__title--provisional")


def _leading_int(text: str) -> Optional[int]:
    match = re.match(r"^\s*([-+]?\d+)", text)
    return int(match.group(1)) if match else None


def _has_weird_title_content(title: Element) -> bool:
    """Anything but a single <em> name (and indenter spans) holding text."""
    ems = title.query_all("em")
    offenders = title.query_all(lambda e: e.tag not in ("em", "span")) + ems[1:]
    return any(elm.text_content.strip() for elm in offenders)


def _is_non_space_indenter(elm: Element) -> bool:
    return bool(elm.text_content.strip()) or elm.query(lambda e: e.tag in INLINE_SELF_CLOSING_ELMS) is not None


def _surprising_article_numbers(titles: List[Element]) -> List[Element]:
    numbered = [(num, elm) for elm in titles for num in [_leading_int(elm.text_content)] if num is not None]
    surprising = []
    last = 0
    for num, elm in numbered:
        if num != last + 1:
            surprising.append(elm)
        last = num
    return surprising


def make_warnings(
    html: str,
    is_impact: bool = False,
    mode: Optional[ValidationMode] = None,
    settings: Optional[Settings] = None,
) -> List[TextWarning]:
    """
    Lists the problems found in `html`.

    Args:
        html: Cleaned regulation text.
        is_impact: The text is an amending (impact) regulation, whose article
                   numbers legitimately jump around.
        mode: RELAXED downgrades some findings, for migrating legacy texts
              that cannot easily be fixed. Defaults to the configured
              `validation_mode`.
        settings: Overrides the environment-driven defaults.
    """
    mode = mode or (settings or default_settings).validation_mode
    warnings: List[TextWarning] = []
    if not html:
        return warnings
    root = parse_html(html)

    def add(code: str, elms: List[Element], angst: Angst = Angst.MEDIUM, count: Optional[int] = None) -> None:
        if not elms:
            return
        count = len(elms) if count is None else count
        warnings.append(
            TextWarning(
                code=code,
                message=message(code, count),
                angst=angst,
                count=count,
                samples=[start_tag(elm) for elm in elms[:MAX_SAMPLES]],
            )
        )

    def find(test: Callable[[Element], bool]) -> List[Element]:
        return root.query_all(test)

    add(
        "fsImages",
        find(
            lambda e: (e.tag == "img" and e.get("src", "").startswith("file:///"))
            or (e.tag == "a" and e.get("href", "").startswith("file:///"))
        ),
        Angst.HIGH,
    )
    # Protocol-relative URLs ("//host/path") count as local
    add("localUrls", find(lambda e: e.tag == "a" and not e.get("href", "").startswith(_SAFE_LINK_PREFIXES)), Angst.HIGH)
    add("insecureLinks", find(lambda e: e.tag == "a" and e.get("href", "").startswith("http://")))
    add("noAltImages", find(lambda e: e.tag == "img" and not e.get("alt")), Angst.HIGH)
    add("h1Titles", find("h1"), Angst.HIGH)
    add("preBlocks", find("pre"))
    add("autoGeneratedLists", find(lambda e: e.tag in ("ul", "ol") and e.has("data-autogenerated")), Angst.HIGH)
    add("cfEmailMarkers", find(lambda e: e.tag == "span" and e.has("data-cfemail")), Angst.HIGH)

    article_titles = find(_is_article_title)
    strict = mode is ValidationMode.STRICT and not is_impact
    add(
        "articleNumbersWeird",
        _surprising_article_numbers(article_titles),
        Angst.HIGH if strict else Angst.MEDIUM,
    )
    add("weirdArticleTitles", [elm for elm in article_titles if not _leading_int(elm.text_content)])
    add("nonRootArticleTitles", [elm for elm in article_titles if elm.parent is not root])
    add("nonRootChapterTitles", find(lambda e: e.has_class("chapter__title") and e.parent is not root))
    add("nonRootSectionTitles", find(lambda e: e.has_class("section__title") and e.parent is not root))
    add(
        "inlineAppendix",
        find(
            lambda e: (e.tag == "h2" and (e.has_class("chapter__title--appendix") or e.has_class("appendix__title")))
            or (e.tag == "section" and e.has_class("appendix"))
        ),
    )

    indenters = find(lambda e: e.has("data-legacy-indenter"))
    add("legacyIndenters", indenters)
    non_space_indenters = [elm for elm in indenters if _is_non_space_indenter(elm)]
    add("nonSpaceLegacyIndenters", non_space_indenters, Angst.HIGH, count=len(indenters))
    add("hasMarginLeft", find(lambda e: "margin-left" in e.get("style", "")))
    titles = find(lambda e: any(e.has_class(name) for name in ("chapter__title", "article__title", "section__title")))
    add("nonEmTitleContent", [elm for elm in titles if _has_weird_title_content(elm)], Angst.HIGH)

    logger.debug(f"make_warnings: {len(warnings)} warnings (mode={mode.value}, impact={is_impact})")
    return warnings


def make_high_angst_warnings(
    html: str,
    is_impact: bool = False,
    mode: Optional[ValidationMode] = None,
    settings: Optional[Settings] = None,
) -> List[TextWarning]:
    return [w for w in make_warnings(html, is_impact, mode, settings) if w.angst is Angst.HIGH]
