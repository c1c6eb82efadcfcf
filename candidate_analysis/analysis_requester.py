"""
Landing page analysis with Gemini.

Builds the analysis prompt from an ExtractedDocument, sends it to the
completion provider and turns the answer into a normalized analysis
result. Does NOT retry; a failed attempt is recorded on the candidate and
picked up again by the next batch run.
"""

from typing import Any, Dict

import google.generativeai as genai

from .analysis_utils import normalize_analysis, parse_analysis_json
from .config import AnalyzerConfig
from .content_extractor import ExtractedDocument
from .errors import ConfigurationError, EmptyResponseError, ProviderError
from .logging_config import get_logger

logger = get_logger('analysis_requester')

SYSTEM_PROMPT = (
    'You are an expert analyst of affiliate products and digital marketing. '
    'Respond only with valid JSON.'
)

ANALYSIS_PROMPT = """You are an expert in digital and affiliate marketing. Analyze the content of this product landing page and return structured JSON with the information below.
{product_context}
LANDING PAGE CONTENT:
---
Title: {title}
Meta Description: {meta_description}
Headings:
{headings}
Page text: {body_text}
---

Return ONLY valid JSON (no markdown, no backticks) with exactly this structure:
{{
  "productName": "product name",
  "shortDescription": "short description (max 200 characters)",
  "mainClaims": ["main claim 1", "main claim 2", "main claim 3"],
  "benefits": ["benefit 1", "benefit 2", "benefit 3", "benefit 4", "benefit 5"],
  "ingredients": ["ingredient or component 1", "ingredient or component 2"],
  "targetAudience": "who the product is for (e.g. men over 40 with prostate issues)",
  "problemSolved": "which problem the product solves",
  "price": "price if stated, otherwise null",
  "guarantee": "guarantee if stated (e.g. 60 days money back), otherwise null",
  "callToAction": "the main call to action of the page",
  "testimonials": ["short testimonial 1", "short testimonial 2"],
  "tone": "scientific|emotional|hype|balanced|informative",
  "category": "wellness|beauty|fitness|sexual-wellbeing|sustainability|nutrition|mental-health",
  "keywordsForSEO": ["keyword 1", "keyword 2", "keyword 3", "keyword 4", "keyword 5"],
  "videoScriptHook": "suggested opening line for a short-form video about this product",
  "articleAngle": "suggested angle for an SEO article about this product",
  "overallQuality": 7,
  "warnings": ["red flags or exaggerated claims"]
}}

RULES:
- If a field cannot be determined, use an empty string or an empty array
- overallQuality: 1-3 = low quality/scam, 4-6 = medium, 7-10 = good quality
- warnings: flag unsupported medical claims, overly aggressive language, etc.
- Return ONLY the JSON, no other text
"""


class GeminiCompletionProvider:
    """Text completion through the Gemini API."""

    def __init__(self, config: AnalyzerConfig):
        self.config = config

    @property
    def is_configured(self) -> bool:
        return self.config.is_provider_configured

    def complete(self, system_prompt: str, user_prompt: str,
                 temperature: float, max_tokens: int) -> str:
        genai.configure(api_key=self.config.gemini_api_key)
        model = genai.GenerativeModel(
            self.config.gemini_model,
            system_instruction=system_prompt,
        )

        response = model.generate_content(
            user_prompt,
            generation_config=genai.GenerationConfig(
                temperature=temperature,
                max_output_tokens=max_tokens,
            ),
            request_options={'timeout': self.config.provider_timeout},
        )

        # response.text raises when the candidate was blocked or has no parts
        try:
            return response.text or ''
        except ValueError:
            return ''


class AnalysisRequester:
    """Ask the completion provider for a structured landing page analysis."""

    def __init__(self, config: AnalyzerConfig, provider=None):
        self.config = config
        self.provider = provider or GeminiCompletionProvider(config)

    def ensure_configured(self) -> None:
        """
        Raises:
            ConfigurationError: if the provider has no credential
        """
        if not getattr(self.provider, 'is_configured', True):
            raise ConfigurationError('GEMINI_API_KEY not configured')

    def build_prompt(self, document: ExtractedDocument, product_name: str = '') -> str:
        product_context = f'\nProduct name as listed by the affiliate network: {product_name}\n' if product_name else ''
        return ANALYSIS_PROMPT.format(
            product_context=product_context,
            title=document.title,
            meta_description=document.meta_description,
            headings='\n'.join(document.headings),
            body_text=document.body_text,
        )

    def request_analysis(self, document: ExtractedDocument, product_name: str = '') -> Dict[str, Any]:
        """
        Run one analysis request.

        Returns:
            Normalized analysis result (see analysis_utils.normalize_analysis)

        Raises:
            ConfigurationError: provider not configured
            ProviderError: provider call failed
            EmptyResponseError: provider returned no text
            ParseError: response is not a JSON object
        """
        self.ensure_configured()

        prompt = self.build_prompt(document, product_name)

        try:
            response_text = self.provider.complete(
                SYSTEM_PROMPT,
                prompt,
                temperature=self.config.temperature,
                max_tokens=self.config.max_output_tokens,
            )
        except Exception as e:
            logger.warning(f"Completion provider error: {e}")
            raise ProviderError(f'AI analysis failed: {e}')

        response_text = (response_text or '').strip()
        if not response_text:
            raise EmptyResponseError('AI analysis returned an empty response')

        return normalize_analysis(parse_analysis_json(response_text))
