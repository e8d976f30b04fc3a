"""Advisory response selection for mazra3.

Given an AnalysisResult, pick the canned advisory text and decide whether
to attach clarification buttons. The decision table:

1. No intent, but a disease or pest was recognized: that entity's advice
   (or the category's generic advice).
2. greeting / thanks: fixed replies.
3. planting_time: calendar advice for the crop in the active region, or a
   request to name the crop.
4. irrigation / disease_treat / pest_control / fertilization / spacing /
   harvest_time: entity-specific text, else the intent's generic text.
5. Anything else resolves to nothing and falls through to the help text.

Whenever nothing resolved or the overall confidence is below the clarify
threshold, up to six buttons (missing crop, then missing intent) are added.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Callable, Mapping

from pydantic import BaseModel, ConfigDict, Field

from .intent import AnalysisResult, IntentConfidence, IntentType, MessageAnalyzer
from .lexicon import MONTH_DISPLAY, Lexicon

logger = logging.getLogger(__name__)

# Messaging channels render at most this many reply buttons
MAX_BUTTONS = 6


# =============================================================================
# Canned responses
# =============================================================================

HELP_TEXT = """أهلًا! اسأل مثل:
• متى ازرع الطماطم؟
• ري الخيار كيف؟
• علاج اللفحة على البندورة؟
• مسافة زراعة البطاطا؟
• تسميد الفلفل؟"""

ASK_CROP_TEXT = "لإعطاء موعد زراعة أدق، اذكر اسم المحصول (مثال: متى ازرع الطماطم؟)."

UNKNOWN_CALENDAR_TEXT = "عمومًا يتحدد الموعد حسب الحرارة المحلية. اذكر منطقتك لنصيحة أدق."

GENERIC = "generic"

RESPONSES: dict[str, Any] = {
    "greeting": "أهلًا وسهلًا 🌿 كيف أقدر أساعدك؟",
    "thanks": "عفوًا، بالتوفيق بالموسم! 🌱",
    "irrigation": {
        GENERIC: "قاعدة: ري عميق متباعد أفضل من ريات خفيفة متكررة. اذكر المحصول لنصائح أدق.",
        "طماطم": "ري منتظم بلا إغراق؛ اترك السطح يجف قليلًا بين الريات. صباحًا أفضل وتجنب البلل الليلي للأوراق.",
        "خيار": "يحتاج رطوبة ثابتة خاصة بالحر؛ تجنب الجفاف المتكرر وزد الري مع الإثمار.",
        "بطاطا": "ري معتدل وتربة جيدة الصرف لتفادي الأعفان.",
        "قمح": "يعتمد غالبًا على أمطار الشتاء؛ ري تكميلي عند الحاجة.",
    },
    "disease_treat": {
        GENERIC: "للمكافحة الحيوية: حسّن التهوية، تجنّب البلل الليلي، ازل الأجزاء المصابة، اتّبع الدورة الزراعية، واستخدم مركبات نحاسية/كبريتية بتركيزات آمنة عند الحاجة.",
        "اللفحة": "تهوية جيدة، إزالة أوراق سفلية المصابة، تجنّب البلل الليلي، ورشّات نحاسية عضوية عند الحاجة.",
        "البياض الدقيقي": "حسّن حركة الهواء، قلّل الرطوبة، رشّات كبريت/بيكربونات بوتاسيوم حسب الإرشادات.",
        "البياض الزغبي": "اختر أصناف متحملة، حسّن الصرف والتهوية، رشّات نحاسية وقائية.",
        "الذبول": "تجنّب التربة المغمورة، حسّن الصرف، اختر أصناف مقاومة، ودورة زراعية أطول.",
    },
    "pest_control": {
        GENERIC: "إدارة متكاملة للآفات: مصائد لاصقة صفراء، إزالة الأعشاب حول الحقل، تشجيع الأعداء الحيوية (الخنافس/الدبابير الطفيلية)، ورشّات صابونية/زيوت نباتية عند الحاجة.",
        "المن": "رشّات صابونية لطيفة، تشجيع الدعسوقات، تجنّب الآزوت الزائد.",
        "الذبابة البيضاء": "مصائد صفراء، تنظيف الحواف، رشّات صابونية/زيوت، وراقب ظهور السلالات المقاومة.",
        "التربس": "خفض الغبار، مصائد زرقاء، رشّات صابونية مبكرة، نباتات مصيدة إن أمكن.",
        "حافرة الاوراق": "إزالة الأوراق المصابة مبكرًا، تشجيع الأعداء الحيوية، مصائد فرمونية عند التوفر.",
        "توتا ابسولوتا": "مصائد فرمونية ومائية، تغطية ببيت بلاستيكي محكم، إزالة بقايا المحصول ودفنها جيدًا.",
        "دودة ورق القطن": "جمع يدوي مبكر، تشجيع الطيور/الأعداء الحيوية، مصائد ضوئية بعيدًا عن الحقل.",
    },
    "fertilization": {
        GENERIC: "ابدأ بتحليل تربة. مبدئيًا: كومبوست متحلل جيّد، ثم NPK متوازن بكميات صغيرة مقسّطة حسب مراحل النمو. لا تُفرط بالنيتروجين.",
        "طماطم": "كومبوست قبل الزراعة + تسميد متوازن؛ زد البوتاسيوم عند التزهير والإثمار.",
        "خيار": "تسميد متدرّج خفيف لكن مستمر؛ حسّاس للملوحة، راقب التوصيل الكهربائي EC.",
        "فلفل": "كومبوست + بوتاسيوم جيد بداية الإزهار؛ راقب الكالسيوم لتجنّب عفن الطرف الزهري.",
    },
    "spacing": {
        GENERIC: "قاعدة عامة: مسافة أكبر = تهوية أفضل وأمراض أقل. اذكر المحصول.",
        "طماطم": "بين الشتلات 40–60 سم، وبين الخطوط 80–100 سم (حسب الصنف والتربية).",
        "خيار": "على التعريشة: 30–40 سم بين الشتلات، 1.5–2 م بين الخطوط.",
        "بطاطا": "بين الدرنات 25–35 سم، بين الخطوط 70–90 سم.",
    },
    "harvest_time": {
        GENERIC: "يختلف حسب الصنف والحرارة. اذكر المحصول.",
        "طماطم": "غالبًا 70–90 يومًا من الشتل حتى أول حصاد.",
        "خيار": "45–60 يومًا من الزراعة.",
        "بطاطا": "90–120 يومًا حسب الموسم والصنف.",
    },
}

# Titles for intent clarification buttons, in display order
INTENT_BUTTONS: dict[str, str] = {
    IntentType.PLANTING_TIME.value: "موعد الزراعة",
    IntentType.IRRIGATION.value: "الري",
    IntentType.DISEASE_TREAT.value: "علاج الأمراض",
    IntentType.PEST_CONTROL.value: "مكافحة الآفات",
    IntentType.FERTILIZATION.value: "التسميد",
    IntentType.SPACING.value: "المسافات",
}


# =============================================================================
# Response records
# =============================================================================


class Button(BaseModel):
    """A quick-reply option offered when the assistant is unsure."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str


class AdvisoryResponse(BaseModel):
    """What the transport layer renders back to the user.

    Attributes:
        text: Reply text (never empty)
        intent: Classified intent label, or None
        confidence: Overall analysis confidence 0.0-1.0
        crop: Recognized crop canonical name
        disease: Recognized disease canonical name
        pest: Recognized pest canonical name
        buttons: Clarification options; None when the reply is confident
    """

    text: str = Field(min_length=1)
    intent: str | None = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    crop: str | None = None
    disease: str | None = None
    pest: str | None = None
    buttons: list[Button] | None = Field(default=None, max_length=MAX_BUTTONS)

    @property
    def needs_clarification(self) -> bool:
        return self.buttons is not None

    def to_dict(self) -> dict[str, Any]:
        """Plain dict; the ``buttons`` key is present only when offered."""
        data = self.model_dump()
        if self.buttons is None:
            data.pop("buttons")
        return data


# =============================================================================
# Planting calendar
# =============================================================================


def month_name(month: int) -> str:
    """Arabic display name for a month number."""
    if 1 <= month <= 12:
        return MONTH_DISPLAY[month]
    return str(month)


def planting_advice(lexicon: Lexicon, crop: str, month: int | None, region: str | None) -> str:
    """Planting-time advice for a crop in a region.

    Args:
        lexicon: Vocabulary holding the calendar
        crop: Canonical crop name
        month: Month the user asked about, if any
        region: Region profile id (unknown ids use the default profile)

    Returns:
        Advice naming the favorable months, or judging the asked month
    """
    favorable = lexicon.favorable_months(region, crop)
    if not favorable:
        return UNKNOWN_CALENDAR_TEXT

    place = lexicon.region_name(region)
    months = "، ".join(month_name(m) for m in favorable)
    if month is not None:
        if month in favorable:
            return f"نعم، {month_name(month)} مناسب لـ{crop} في منطقتك ({place})."
        return (
            f"الشهر {month_name(month)} ليس الأنسب عادةً لـ{crop} في ({place}). "
            f"الأشهر المناسبة: {months}."
        )
    return f"الأشهر المناسبة لزراعة {crop} ({place}): {months}."


# =============================================================================
# Selector
# =============================================================================


class AdvisorySelector:
    """Pick the reply for an analyzed message."""

    def __init__(
        self,
        lexicon: Lexicon | None = None,
        responses: Mapping[str, Any] | None = None,
        clarify_threshold: float = IntentConfidence.CLARIFY,
        max_buttons: int = MAX_BUTTONS,
    ) -> None:
        self.lexicon = lexicon or Lexicon.default()
        self.responses = responses or RESPONSES
        self.clarify_threshold = clarify_threshold
        self.max_buttons = min(max_buttons, MAX_BUTTONS)

        self._handlers: dict[IntentType, Callable[[AnalysisResult], str | None]] = {
            IntentType.GREETING: lambda a: self.responses["greeting"],
            IntentType.THANKS: lambda a: self.responses["thanks"],
            IntentType.PLANTING_TIME: self._planting,
            IntentType.IRRIGATION: lambda a: self._lookup("irrigation", a.crop.value),
            IntentType.DISEASE_TREAT: lambda a: self._lookup("disease_treat", a.disease.value),
            IntentType.PEST_CONTROL: lambda a: self._lookup("pest_control", a.pest.value),
            IntentType.FERTILIZATION: lambda a: self._lookup("fertilization", a.crop.value),
            IntentType.SPACING: lambda a: self._lookup("spacing", a.crop.value),
            IntentType.HARVEST_TIME: lambda a: self._lookup("harvest_time", a.crop.value),
        }

    def _lookup(self, section: str, key: str | None) -> str:
        table = self.responses[section]
        if key is not None and key in table:
            return table[key]
        return table[GENERIC]

    def _planting(self, analysis: AnalysisResult) -> str:
        if analysis.crop.value is None:
            return ASK_CROP_TEXT
        return planting_advice(self.lexicon, analysis.crop.value, analysis.month, analysis.region)

    def select(self, analysis: AnalysisResult) -> str | None:
        """Decision table lookup; None when no rule applies."""
        if analysis.intent is None:
            if analysis.disease.found:
                return self._lookup("disease_treat", analysis.disease.value)
            if analysis.pest.found:
                return self._lookup("pest_control", analysis.pest.value)
            return None

        intent = IntentType.parse(analysis.intent)
        handler = self._handlers.get(intent) if intent is not None else None
        if handler is None:
            logger.debug(f"No response rule for intent '{analysis.intent}'")
            return None
        return handler(analysis)

    def clarification_buttons(self, analysis: AnalysisResult) -> list[Button]:
        """Crop options when no crop was found, then intent options when no intent was."""
        buttons: list[Button] = []
        if not analysis.crop.found:
            for crop in list(self.lexicon.crops)[: self.max_buttons]:
                buttons.append(Button(id=f"crop_{crop}", title=crop))
        if analysis.intent is None:
            for label, title in INTENT_BUTTONS.items():
                buttons.append(Button(id=f"intent_{label}", title=title))
        return buttons[: self.max_buttons]

    def respond(self, analysis: AnalysisResult) -> AdvisoryResponse:
        """Build the full response record for an analysis.

        Args:
            analysis: Output of MessageAnalyzer.analyze()

        Returns:
            AdvisoryResponse; buttons are attached when nothing resolved or
            the confidence is below the clarify threshold
        """
        text = self.select(analysis)
        confidence = analysis.confidence

        buttons = None
        if text is None or confidence < self.clarify_threshold:
            buttons = self.clarification_buttons(analysis)
            logger.debug(
                f"Clarifying (resolved={text is not None}, confidence={confidence:.2f}): "
                f"{len(buttons)} buttons"
            )

        return AdvisoryResponse(
            text=text or HELP_TEXT,
            intent=analysis.intent,
            confidence=confidence,
            crop=analysis.crop.value,
            disease=analysis.disease.value,
            pest=analysis.pest.value,
            buttons=buttons,
        )


# =============================================================================
# Module-level helpers
# =============================================================================


@lru_cache(maxsize=1)
def _default_pipeline() -> tuple[MessageAnalyzer, AdvisorySelector]:
    lexicon = Lexicon.default()
    return MessageAnalyzer(lexicon), AdvisorySelector(lexicon)


def _region_of(ctx: Any) -> str | None:
    if ctx is None:
        return None
    if isinstance(ctx, Mapping):
        return ctx.get("region")
    return getattr(ctx, "region", None)


def respond(text: object, ctx: Any = None) -> AdvisoryResponse:
    """Analyze and answer one message with the built-in lexicon.

    Args:
        text: Raw message text
        ctx: Optional context (mapping or object) carrying a ``region``
    """
    analyzer, selector = _default_pipeline()
    return selector.respond(analyzer.analyze(text, _region_of(ctx)))


def match_faq(text: object, ctx: Any = None) -> str | None:
    """Reply text only, or None when no advisory rule matched."""
    analyzer, selector = _default_pipeline()
    return selector.select(analyzer.analyze(text, _region_of(ctx)))


__all__ = [
    "ASK_CROP_TEXT",
    "AdvisoryResponse",
    "AdvisorySelector",
    "Button",
    "HELP_TEXT",
    "INTENT_BUTTONS",
    "MAX_BUTTONS",
    "RESPONSES",
    "match_faq",
    "month_name",
    "planting_advice",
    "respond",
]
