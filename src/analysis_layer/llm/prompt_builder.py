"""
Prompt builder for facet generation requests.

Responsible for:
- Loading and rendering Jinja2 templates (system, per-facet user prompts, retry)
- Including the prior-context block only when context is present
- Building the retry prompt from the base prompt plus failure-specific feedback
- Constructing the LLMGenerationRequest (grammar, sampling, context size)
"""

from pathlib import Path
from typing import Optional
from jinja2 import Environment, FileSystemLoader, StrictUndefined
import structlog

from analysis_layer.models.enums import (
    AnalysisFacet,
    ConfidenceLevel,
    Intensity,
    Severity,
    Valence,
)
from analysis_layer.models.input_models import GenerationRequest
from analysis_layer.models.llm_models import LLMGenerationRequest
from analysis_layer.retry.feedback import corrective_note_for
from analysis_layer.validation.exceptions import GenerationFailure


logger = structlog.get_logger(__name__)

DEFAULT_TEMPLATES_DIR = Path(__file__).parent / "templates"

_TEMPLATE_VARS = {
    "confidence_levels": [level.value for level in ConfidenceLevel],
    "intensities": [intensity.value for intensity in Intensity],
    "valences": [valence.value for valence in Valence],
    "severities": [severity.value for severity in Severity],
    "alternative_count": 3,
}


class PromptBuilder:
    """
    Build prompts and model requests for facet generation.

    Templates:
    - system.j2: shared system prompt (alternatives variant inside)
    - <facet>.j2: user prompt per facet
    - _context.j2: prior-turns block, included by every facet template
    - retry_prompt.j2: base prompt plus corrective note
    """

    def __init__(
        self,
        templates_dir: Optional[Path] = None,
        model: str = "qwen3:4b-instruct",
        context_size: Optional[int] = None,
    ):
        """
        Initialize prompt builder.

        Args:
            templates_dir: Directory containing prompt templates (default: bundled)
            model: Model name put on every request
            context_size: Context window (num_ctx) put on every request
        """
        self.templates_dir = Path(templates_dir) if templates_dir else DEFAULT_TEMPLATES_DIR
        self.model = model
        self.context_size = context_size

        self.jinja_env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
            autoescape=False,  # prompts, not HTML
            undefined=StrictUndefined,
        )

        try:
            self.system_template = self.jinja_env.get_template("system.j2")
            self.retry_template = self.jinja_env.get_template("retry_prompt.j2")
            self.facet_templates = {
                facet: self.jinja_env.get_template(f"{facet.value}.j2")
                for facet in AnalysisFacet
            }
        except Exception as e:
            logger.error("Failed to load prompt templates", error=str(e), templates_dir=str(self.templates_dir))
            raise

        logger.info("Loaded prompt templates", templates_dir=str(self.templates_dir))

    def build_system_prompt(self, facet: AnalysisFacet) -> str:
        return self.system_template.render(facet=AnalysisFacet(facet).value).strip()

    def build_prompt(self, request: GenerationRequest) -> str:
        """
        Render the base (attempt 1) user prompt for a request.

        The context blob is inserted verbatim; without it the prompt is the
        plain single-message analysis.
        """
        template = self.facet_templates[request.facet]
        rendered = template.render(
            message=request.message,
            context=request.context if request.has_context else None,
            **_TEMPLATE_VARS,
        ).strip()

        logger.debug(
            "Prompt built",
            facet=request.facet.value,
            has_context=request.has_context,
            prompt_length=len(rendered),
        )
        return rendered

    def build_retry_prompt(self, base_prompt: str, failure: GenerationFailure) -> str:
        """Base prompt plus the corrective note for ``failure``."""
        return self.retry_template.render(
            base_prompt=base_prompt,
            reason=failure.reason,
            offending_path=failure.offending_path,
            corrective_note=corrective_note_for(failure),
        ).strip()

    def build_llm_request(
        self,
        request: GenerationRequest,
        prompt: str,
        grammar: dict,
    ) -> LLMGenerationRequest:
        sampling = request.sampling
        return LLMGenerationRequest(
            prompt=prompt,
            system=self.build_system_prompt(request.facet),
            model=self.model,
            temperature=sampling.temperature,
            max_tokens=sampling.max_tokens,
            num_ctx=self.context_size,
            format_schema=grammar,
            top_p=sampling.top_p,
            seed=sampling.seed,
        )
