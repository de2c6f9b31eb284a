"""
Prompt templates for legal text conversion.
"""
from dataclasses import dataclass
from typing import Dict, Optional, Tuple


@dataclass
class PromptTemplate:
    """Template for LLM prompts"""
    name: str
    system_prompt: str
    user_prompt_template: str
    description: str = ""

    def format(self, **kwargs) -> Tuple[str, str]:
        """Format prompt with variables"""
        return self.system_prompt, self.user_prompt_template.format(**kwargs)


CONVERSION_PROMPTS: Dict[str, PromptTemplate] = {
    "legal-to-plain": PromptTemplate(
        name="legal-to-plain",
        description="Rewrite legal text in plain language",
        system_prompt="""You are an expert legal editor who rewrites legal documents in plain English.
Keep every obligation, right, condition, deadline, amount and party of the original.
Do not add advice or commentary. Use short sentences, everyday words and the
second person where the reader is a party. Preserve headings and numbering.""",
        user_prompt_template="""Rewrite the following legal text in plain language:

{text}""",
    ),
    "plain-to-legal": PromptTemplate(
        name="plain-to-legal",
        description="Rewrite plain text as formal legal drafting",
        system_prompt="""You are an experienced contract drafter.
Rewrite the user's plain-language text as precise, formal legal drafting.
Define parties and terms where useful, use "shall" for obligations and keep
the substance of the original without inventing new terms.""",
        user_prompt_template="""Rewrite the following text in formal legal language:

{text}""",
    ),
    "key_terms": PromptTemplate(
        name="key_terms",
        description="Extract defined and important terms",
        system_prompt="""You analyse legal documents. Answer with JSON only.""",
        user_prompt_template="""List the key legal terms in the document below with a one-sentence
plain-language explanation of each.

Answer with a JSON array:
[{{"term": "...", "explanation": "..."}}]

Document:
{text}""",
    ),
    "summary": PromptTemplate(
        name="summary",
        description="Short plain-language summary",
        system_prompt="""You summarise legal documents for non-lawyers.""",
        user_prompt_template="""Summarise the document below in at most five sentences of plain language.
Mention the parties, the main obligations and any deadlines or amounts.

Document:
{text}""",
    ),
}


class PromptBuilder:
    """Builds prompts for the conversion operations"""

    def __init__(self, templates: Optional[Dict[str, PromptTemplate]] = None):
        self.templates = templates or CONVERSION_PROMPTS

    def get_template(self, name: str) -> Optional[PromptTemplate]:
        return self.templates.get(name)

    def build(self, name: str, text: str) -> Tuple[str, str]:
        template = self.get_template(name)
        if template is None:
            raise KeyError(f"Unknown prompt template: {name}")
        return template.format(text=text)
