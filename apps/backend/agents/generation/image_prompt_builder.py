"""
Image generation prompt builder for slide images.

Turns a slide into a provider-ready request in three pure steps:
- PromptClassifier: decide whether the image must carry legible text
  (text-capable provider) or is a plain scene (photo-realistic provider),
  and build the base prompt
- PromptEnhancer: strip words the photo provider refuses, then append
  quality/style modifiers to substantive prompts
- Presentation style presets: deck-wide look, negative prompt and provider
  preference for image/photo slides

Classification is a heuristic over free text and is kept swappable: the
builder accepts any object with a ``classify_slide`` method.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from agents.config import IDEOGRAM_NEGATIVE_PROMPT, RECRAFT_NEGATIVE_PROMPT
from agents.domain.models import GenerationRequest, Provider, Slide, SlideKind
from agents.generation.exceptions import SlideImageError


@dataclass(frozen=True)
class ClassifiedPrompt:
    base_prompt: str
    needs_text: bool
    category: Optional[str] = None

    @property
    def provider(self) -> Provider:
        return Provider.for_text(self.needs_text)


class PromptClassifier:
    """Decide text-bearing vs photo-style and build the base prompt."""

    # Title keyword -> category, checked in order
    TITLE_CATEGORIES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
        ('introduction', ('introduction', 'overview')),
        ('conclusion', ('conclusion', 'summary')),
        ('data', ('data', 'statistics', 'numbers')),
        ('timeline', ('timeline', 'history')),
        ('comparison', ('comparison', 'versus', 'vs')),
        ('team', ('team', 'people', 'staff')),
        ('process', ('process', 'workflow', 'steps')),
        ('quote', ('quote', 'testimonial')),
        ('chart', ('chart', 'graph')),
        ('agenda', ('agenda', 'outline')),
    )

    TEXT_CATEGORIES = frozenset({'data', 'timeline', 'comparison', 'process', 'quote', 'chart', 'agenda'})

    CATEGORY_TEMPLATES: Dict[str, str] = {
        'introduction': "Professional concept visualization of {}, welcoming and engaging",
        'conclusion': "Conclusive visual summarizing {}, forward-looking, professional",
        'data': "Visual representation of data: {}, data visualization, infographic style",
        'timeline': "Timeline visual showing progression of {}, chronological, flow",
        'comparison': "Side-by-side comparison visualization of {}, contrasting elements",
        'team': "Professional team collaboration image related to {}, diverse business setting",
        'process': "Step-by-step process visualization of {}, flow diagram concept",
        'quote': "Visual backdrop for quote: {}, inspirational, elegant",
        'chart': "Business chart visualization for {}, professional data presentation",
        'agenda': "Visual backdrop for agenda: {}, organized, professional",
    }

    # Slide kinds that always carry text
    TEXT_KINDS = frozenset({SlideKind.TITLE, SlideKind.COVER})
    # Slide kinds whose name doubles as a category hint
    KIND_HINTS = frozenset({
        SlideKind.TIMELINE, SlideKind.CHART, SlideKind.COMPARISON, SlideKind.PROCESS,
        SlideKind.QUOTE, SlideKind.AGENDA, SlideKind.DATA,
    })

    GENERIC_PROMPT = "Professional presentation visual"

    _YEAR = re.compile(r'\b\d{4}\b')
    _NUMERIC = re.compile(r'\d+(?:\.\d+)?\s?%|[$€£¥]\s?\d')
    _QUOTES = re.compile(r'["“”]')
    _BULLETS = re.compile(r'^\s*[-•*]\s+', re.MULTILINE)
    _TAGS = re.compile(r'\[(?:IMAGE|NOTES):.*?\]', re.DOTALL)
    _HINT_WORDS = re.compile(r'\b(timeline|chart|comparison|process|quote|agenda)\b', re.IGNORECASE)
    _COVER_WORDS = re.compile(r'\b(title|cover)\b', re.IGNORECASE)

    def __init__(self, content_word_limit: int = 20):
        self.content_word_limit = content_word_limit

    def classify_slide(self, slide: Slide) -> ClassifiedPrompt:
        return self.classify(slide.kind, slide.title, slide.body, slide.image_prompt)

    def classify(
        self,
        kind: SlideKind,
        title: str = "",
        body: str = "",
        image_prompt: Optional[str] = None
    ) -> ClassifiedPrompt:
        kind = SlideKind.parse(kind)
        title = (title or '').strip()

        if image_prompt and image_prompt.strip():
            seed = image_prompt.strip()
            needs_text = self.has_text_cues(seed) or kind in self.TEXT_KINDS or kind in self.KIND_HINTS
            return ClassifiedPrompt(base_prompt=seed, needs_text=needs_text)

        sample = self._content_sample(body)
        category = self._category_from_title(title)
        if not category and kind in self.KIND_HINTS:
            category = kind.value

        needs_text = kind in self.TEXT_KINDS or bool(self._COVER_WORDS.search(title))
        if category in self.TEXT_CATEGORIES:
            needs_text = True

        scanned = f"{title}\n{sample}"
        if self._YEAR.search(sample):
            category = category or 'timeline'
            needs_text = True
        if self._NUMERIC.search(scanned):
            category = category or 'data'
            needs_text = True
        if self._QUOTES.search(sample):
            category = category or 'quote'
            needs_text = True
        if self._BULLETS.search(sample) or self._HINT_WORDS.search(scanned):
            needs_text = True

        seed = ' '.join(f"{title} {sample}".split())
        if not seed:
            return ClassifiedPrompt(base_prompt=self.GENERIC_PROMPT, needs_text=needs_text, category=category)

        template = self.CATEGORY_TEMPLATES.get(category)
        base_prompt = template.format(seed) if template else seed
        return ClassifiedPrompt(base_prompt=base_prompt, needs_text=needs_text, category=category)

    def has_text_cues(self, text: str) -> bool:
        """True when the text carries years, figures, quotes, bullets or category hint words."""
        return bool(
            self._YEAR.search(text)
            or self._NUMERIC.search(text)
            or self._QUOTES.search(text)
            or self._BULLETS.search(text)
            or self._HINT_WORDS.search(text)
        )

    def _content_sample(self, body: str) -> str:
        """First ``content_word_limit`` words of the body, line breaks kept for bullet detection."""
        clean = self._TAGS.sub('', body or '').strip()
        words = list(re.finditer(r'\S+', clean))
        if len(words) > self.content_word_limit:
            return clean[:words[self.content_word_limit - 1].end()]
        return clean

    def _category_from_title(self, title: str) -> Optional[str]:
        lowered = title.lower()
        for category, keywords in self.TITLE_CATEGORIES:
            if any(re.search(rf'\b{re.escape(k)}\b', lowered) for k in keywords):
                return category
        return None


class PromptEnhancer:
    """Provider-specific filtering and enrichment of a base prompt."""

    # Words the photo-realistic provider rejects
    DENYLIST: Tuple[str, ...] = (
        'nude', 'naked', 'nsfw', 'porn', 'sex', 'explicit',
        'obscene', 'blood', 'gore', 'violent', 'death', 'kill',
        'suicide', 'terrorist', 'torture', 'illegal', 'drug',
    )

    _HAS_STYLE = re.compile(r'style|aesthetic|look|visual|design')
    _HAS_QUALITY = re.compile(r'high[ -]quality|detailed|professional|crisp|clear|sharp')
    _HAS_PRESENTATION = re.compile(r'slide|presentation|deck|keynote|powerpoint')
    _HAS_LIGHTING = re.compile(r'lighting|light|shadow|bright|dim')
    _DENYLIST = re.compile(r'\b(?:' + '|'.join(DENYLIST) + r')\b', re.IGNORECASE)

    def __init__(self, min_length: int = 150):
        self.min_length = min_length

    def filter(self, prompt: str, provider: Provider) -> str:
        """Remove denylisted words (whole word, any case) for the photo-realistic provider."""
        if provider.is_text_capable:
            return prompt
        filtered = self._DENYLIST.sub('', prompt)
        filtered = re.sub(r'\s+([,.;:])', r'\1', filtered)
        return re.sub(r'\s{2,}', ' ', filtered).strip()

    def enhance(self, base_prompt: str, provider: Provider) -> str:
        prompt = self.filter(base_prompt or '', provider)
        if len(prompt) < self.min_length:
            return prompt

        lowered = prompt.lower()
        if provider.is_text_capable:
            if not self._HAS_STYLE.search(lowered):
                prompt += ", clean vector style, minimalist illustration"
            if not self._HAS_QUALITY.search(lowered):
                prompt += ", high-quality presentation graphic"
            if not self._HAS_PRESENTATION.search(lowered):
                prompt += ", perfect for business presentation"
        else:
            if not self._HAS_STYLE.search(lowered):
                prompt += ", professional realistic style"
            if not self._HAS_QUALITY.search(lowered):
                prompt += ", highly detailed, 4K resolution"
            if not self._HAS_LIGHTING.search(lowered):
                prompt += ", well-lit environment"
        return prompt


class PresentationStyle(str, Enum):
    CORPORATE = "corporate"
    CREATIVE = "creative"
    TECHNICAL = "technical"
    NATURE = "nature"
    MODERN = "modern"
    VINTAGE = "vintage"


@dataclass(frozen=True)
class StylePreset:
    name: PresentationStyle
    prompt: str
    negative: str
    preferred_provider: Provider
    ideogram_style: str
    recraft_style: str

    def provider_style(self, provider: Provider) -> str:
        return self.ideogram_style if provider.is_text_capable else self.recraft_style


STYLE_PRESETS: Dict[PresentationStyle, StylePreset] = {
    PresentationStyle.CORPORATE: StylePreset(
        PresentationStyle.CORPORATE,
        "professional, clean corporate style, business environment, muted blue and gray tones",
        "cartoon, vibrant, surreal, unprofessional",
        Provider.IDEOGRAM, 'design', 'realistic_image'),
    PresentationStyle.CREATIVE: StylePreset(
        PresentationStyle.CREATIVE,
        "vibrant colors, artistic, creative, expressive, imaginative design",
        "boring, plain, monochrome, corporate",
        Provider.RECRAFT, 'general', 'digital_illustration'),
    PresentationStyle.TECHNICAL: StylePreset(
        PresentationStyle.TECHNICAL,
        "technical, precise, detailed, scientific, schematic diagrams, technical illustrations",
        "messy, artistic, abstract, imprecise",
        Provider.IDEOGRAM, 'design', 'vector_illustration'),
    PresentationStyle.NATURE: StylePreset(
        PresentationStyle.NATURE,
        "natural elements, organic, earth tones, environmental, sustainable",
        "urban, industrial, artificial, synthetic",
        Provider.RECRAFT, 'realistic', 'realistic_image/natural_light'),
    PresentationStyle.MODERN: StylePreset(
        PresentationStyle.MODERN,
        "contemporary, sleek, minimalist, innovative, cutting-edge design",
        "vintage, retro, ornate, traditional",
        Provider.IDEOGRAM, 'design', 'digital_illustration'),
    PresentationStyle.VINTAGE: StylePreset(
        PresentationStyle.VINTAGE,
        "retro, classic, nostalgic, aged texture, heritage feel, historical",
        "modern, futuristic, sleek, contemporary",
        Provider.RECRAFT, 'general', 'realistic_image'),
}


def resolve_style(style: Optional[str]) -> StylePreset:
    """Map a style name onto a preset; anything unrecognized becomes corporate."""
    try:
        return STYLE_PRESETS[PresentationStyle(str(style or '').strip().lower())]
    except ValueError:
        return STYLE_PRESETS[PresentationStyle.CORPORATE]


class ImageGenerationPromptBuilder:
    """Build a GenerationRequest for a slide."""

    PHOTO_KINDS = frozenset({SlideKind.IMAGE, SlideKind.PHOTO})

    def __init__(
        self,
        classifier: Optional[PromptClassifier] = None,
        enhancer: Optional[PromptEnhancer] = None,
        style: Optional[str] = None,
        size: str = "landscape"
    ) -> None:
        self.classifier = classifier or PromptClassifier()
        self.enhancer = enhancer or PromptEnhancer()
        self.style = resolve_style(style)
        self.size = size

    def select_provider(self, slide: Slide, classified: ClassifiedPrompt) -> Provider:
        # Image/photo slides follow the deck style's preference
        if slide.kind in self.PHOTO_KINDS:
            return self.style.preferred_provider
        return classified.provider

    def build_request(self, slide: Slide) -> GenerationRequest:
        self._check(slide)
        classified = self.classifier.classify_slide(slide)
        provider = self.select_provider(slide, classified)
        prompt = self.enhancer.enhance(classified.base_prompt, provider)
        prompt = f"{prompt}, {self.style.prompt}"

        default_negative = IDEOGRAM_NEGATIVE_PROMPT if provider.is_text_capable else RECRAFT_NEGATIVE_PROMPT
        return GenerationRequest(
            slide_id=slide.id,
            prompt=prompt,
            provider=provider,
            negative_prompt=f"{default_negative}, {self.style.negative}",
            style=self.style.provider_style(provider),
            size=self.size,
        )

    @staticmethod
    def _check(slide: Slide) -> None:
        if not isinstance(slide.id, str) or not slide.id:
            raise SlideImageError(slide.id, "Slide has no usable id")
        for name in ('title', 'body'):
            if not isinstance(getattr(slide, name), str):
                raise SlideImageError(slide.id, f"Slide {name} is not text")
        if slide.image_prompt is not None and not isinstance(slide.image_prompt, str):
            raise SlideImageError(slide.id, "Slide image prompt is not text")
