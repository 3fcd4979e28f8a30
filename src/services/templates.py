"""
Confirmation email templates.

Templates are packaged with the Lambda under services/email_templates/ and cached
in memory for warm invocations.
"""

import logging
from pathlib import Path
from typing import Dict

logger = logging.getLogger(__name__)

# In Lambda: /var/task/services/email_templates/
TEMPLATES_DIR = Path(__file__).parent / 'email_templates'

# Module-level cache: {template_name: content}
_template_cache: Dict[str, str] = {}


def load_template(template_name: str) -> str:
    """
    Load template content, cached after the first read.

    Args:
        template_name: Template file name (e.g., "confirmation.txt")

    Returns:
        str: Template content

    Raises:
        ValueError: If template not found
    """
    if template_name in _template_cache:
        return _template_cache[template_name]

    template_path = TEMPLATES_DIR / template_name
    try:
        with open(template_path, 'r', encoding='utf-8') as f:
            content = f.read()
    except FileNotFoundError:
        logger.error(f"Template not found: {template_name}. Expected location: {template_path}")
        raise ValueError(f"Template '{template_name}' not found")

    logger.info(f"Loaded template {template_name}: {len(content)} characters")
    _template_cache[template_name] = content
    return content


def format_template(template: str, **variables) -> str:
    """
    Format template with variables.

    Values are inserted literally; placeholders inside values are not expanded.

    Raises:
        ValueError: If a required variable is missing

    Example:
        >>> format_template("Issue #{issue_number}", issue_number=42)
        'Issue #42'
    """
    try:
        return template.format(**variables)
    except KeyError as e:
        missing_var = str(e).strip("'")
        logger.error(f"Missing variable in template: {missing_var}")
        raise ValueError(f"Missing required variable in template: {missing_var}")


def clear_cache() -> None:
    """Clear the template cache."""
    _template_cache.clear()
    logger.info("Template cache cleared")
