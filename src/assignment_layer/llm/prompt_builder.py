"""
Prompt builder for label assignment requests.

Responsible for:
- Loading and rendering Jinja2 templates (system + user prompts)
- Listing transactions and the closed vocabulary in the user prompt
- Building the tool (function) schema that constrains the answer to the vocabulary
"""

from pathlib import Path
from typing import Optional, Sequence
from jinja2 import Environment, FileSystemLoader, StrictUndefined
import structlog

from assignment_layer.models.enums import LabelSpace
from assignment_layer.models.input_models import ClassificationRecord
from assignment_layer.models.llm_models import ChatMessage, ToolDefinition


logger = structlog.get_logger(__name__)

DEFAULT_TEMPLATES_DIR = Path(__file__).parent / "templates"


class PromptBuilder:
    """
    Build prompts and tool schemas for one group of transactions.

    Templates:
    - system_prompt.txt: role and rules for the label space
    - user_prompt_template.txt: vocabulary + numbered transaction list
    """

    def __init__(self, templates_dir: Optional[Path] = None):
        """
        Initialize prompt builder.

        Args:
            templates_dir: Directory containing prompt templates
                (defaults to the templates bundled with the package)
        """
        self.templates_dir = Path(templates_dir) if templates_dir else DEFAULT_TEMPLATES_DIR

        self.jinja_env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
            autoescape=False  # We're generating prompts, not HTML
        )

        try:
            self.system_template = self.jinja_env.get_template("system_prompt.txt")
            self.user_template = self.jinja_env.get_template("user_prompt_template.txt")
        except Exception as e:
            logger.error("Failed to load prompt templates", error=str(e), templates_dir=str(self.templates_dir))
            raise

        logger.info("Loaded prompt templates", templates_dir=str(self.templates_dir))

    def build_system_prompt(self, label_space: LabelSpace) -> str:
        """Render the system prompt for a label space."""
        return self.system_template.render(
            label=label_space.value,
            allows_empty=label_space.allows_empty,
        ).strip()

    def build_user_prompt(
        self,
        label_space: LabelSpace,
        records: Sequence[ClassificationRecord],
        vocabulary: Sequence[str],
        context: Optional[Sequence[Optional[str]]] = None,
    ) -> str:
        """
        Render the user prompt listing the vocabulary and the transactions.

        Args:
            label_space: Category or budget
            records: Transactions of this request, in order
            vocabulary: Allowed labels
            context: Optional per-record extra information (for budgets: the
                category already assigned to the transaction)
        """
        transactions = []
        for index, record in enumerate(records):
            data = record.model_dump()
            data["context"] = context[index] if context else None
            transactions.append(data)

        return self.user_template.render(
            label=label_space.value,
            field_name=label_space.field_name,
            verb="categorize" if label_space is LabelSpace.CATEGORY else "budget",
            vocabulary=list(vocabulary),
            transactions=transactions,
            allows_empty=label_space.allows_empty,
            context_label="Assigned category",
        ).strip()

    def build_messages(
        self,
        label_space: LabelSpace,
        records: Sequence[ClassificationRecord],
        vocabulary: Sequence[str],
        context: Optional[Sequence[Optional[str]]] = None,
    ) -> list[ChatMessage]:
        """One request unit: a single user message for the group of records."""
        return [
            ChatMessage(
                role="user",
                content=self.build_user_prompt(label_space, records, vocabulary, context),
            )
        ]

    def build_tool(self, label_space: LabelSpace, vocabulary: Sequence[str]) -> ToolDefinition:
        """
        Build the tool definition whose input schema enumerates the vocabulary.

        Budgets add "" to the enum so "no budget" stays expressible.
        """
        field_name = label_space.field_name
        allowed = list(vocabulary)
        if label_space.allows_empty and "" not in allowed:
            allowed.append("")

        no_match = ' Use "" if no budget fits.' if label_space.allows_empty else ""
        return ToolDefinition(
            name=label_space.tool_name,
            description=(
                f"Assign the closest matching {label_space.value} from the available options "
                f"to each transaction in the exact order provided.{no_match}"
            ),
            input_schema={
                "type": "object",
                "properties": {
                    field_name: {
                        "type": "array",
                        "items": {"type": "string", "enum": allowed},
                        "description": f"Array of {field_name} corresponding to each transaction in order",
                    }
                },
                "required": [field_name],
            },
        )
