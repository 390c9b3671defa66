"""Template rendering for email notifications using Jinja2.

Every template kind has two files in the email_templates package directory:
``<kind>_subject.j2`` and ``<kind>_body.html.j2``. Bodies extend a shared
``base.html.j2`` layout.
"""

import logging
from datetime import datetime
from typing import Any, Mapping, Optional, Union

from jinja2 import (
    Environment,
    PackageLoader,
    StrictUndefined,
    TemplateError,
    select_autoescape,
)

from .models import NotificationTemplateError, RenderedEmail
from .payloads import TemplateName, build_template_context

logger = logging.getLogger(__name__)

FALLBACK_SUBJECT = "Notification from OCRS"


class TemplateRenderer:
    """Renders notification emails using Jinja2.

    Unknown template identifiers fall back to the generic template. Payload
    fields are always present in the context (None when absent), so the
    strict undefined policy only trips on a typo inside a template file.

    Templates are cached by the Jinja2 environment after first load.
    """

    def __init__(self, template_dir: str = "email_templates"):
        """Initialize template renderer with Jinja2 environment.

        Args:
            template_dir: Directory name within the notifications package
        """
        self.env = Environment(
            loader=PackageLoader("notification_service.notifications", template_dir),
            # Bodies escape payload fields; subjects are plain header text
            autoescape=select_autoescape(enabled_extensions=("html.j2",), default=False),
            undefined=StrictUndefined,
        )

        logger.debug(f"Initialized TemplateRenderer with templates from {template_dir}")

    def render(
        self,
        template_name: Union[TemplateName, str, None],
        data: Optional[Mapping[str, Any]] = None,
        now: Optional[datetime] = None,
    ) -> RenderedEmail:
        """Render subject and HTML body for a notification.

        Args:
            template_name: Template identifier (unknown values use generic)
            data: Notification fields
            now: Reference time for a missing timestamp (default: current time)

        Returns:
            RenderedEmail with a non-empty subject and HTML body

        Raises:
            NotificationTemplateError: If a template file fails to render
        """
        template = TemplateName.resolve(template_name)
        context = build_template_context(template, data, now=now)

        try:
            subject_template = self.env.get_template(f"{template.file_stem}_subject.j2")
            html_template = self.env.get_template(f"{template.file_stem}_body.html.j2")

            # Subjects are single-line and go into a header, not HTML
            subject = " ".join(subject_template.render(context).split())
            html = html_template.render(context)
        except TemplateError as e:
            error_msg = f"Template rendering failed for {template.value}: {e}"
            logger.error(error_msg, exc_info=True)
            raise NotificationTemplateError(error_msg) from e

        logger.debug(f"Rendered {template.value} template")

        return RenderedEmail(subject=subject or FALLBACK_SUBJECT, html=html)
