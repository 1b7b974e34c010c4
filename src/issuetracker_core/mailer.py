"""Email templates and SMTP delivery."""
import logging
import re
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

logger = logging.getLogger("issuetracker-core.mailer")

TEMPLATES_DIR = Path(__file__).parent / "templates"

FRONTMATTER_PATTERN = re.compile(r"^---\s*\n(.*?)\n---\s*\n(.*)$", re.DOTALL)


class TemplateError(Exception):
    """Raised when an email template is missing or malformed."""
    pass


def load_template(name: str, templates_dir: Path = TEMPLATES_DIR) -> str:
    """Load an email template by name.

    Args:
        name: Template identifier, e.g. "user_welcome"
        templates_dir: Directory holding the `<name>.md` files

    Returns:
        The raw template text

    Raises:
        TemplateError: If the template file doesn't exist
    """
    template_path = templates_dir / f"{name}.md"
    if not template_path.exists():
        raise TemplateError(f"Template not found: {template_path}")
    return template_path.read_text()


def parse_template(content: str) -> tuple[dict[str, Any], str]:
    """Split a template into its YAML frontmatter and body.

    Raises:
        TemplateError: If the frontmatter is missing or is not a mapping
    """
    match = FRONTMATTER_PATTERN.match(content)
    if not match:
        raise TemplateError("Invalid template: missing YAML frontmatter")
    try:
        frontmatter = yaml.safe_load(match.group(1))
    except yaml.YAMLError as e:
        raise TemplateError(f"Invalid template frontmatter: {e}") from e
    if not isinstance(frontmatter, dict) or "subject" not in frontmatter:
        raise TemplateError("Template frontmatter must define a subject")
    return frontmatter, match.group(2).strip()


def render_template(name: str, data: Mapping[str, str], templates_dir: Path = TEMPLATES_DIR) -> tuple[str, str]:
    """
    Render a template's subject and plain-text body.

    Args:
        name: Template identifier
        data: Values substituted into `{placeholders}`
        templates_dir: Directory holding the templates

    Returns:
        (subject, body)

    Raises:
        TemplateError: If the template is malformed or a placeholder has no value
    """
    frontmatter, body = parse_template(load_template(name, templates_dir))
    try:
        subject = str(frontmatter["subject"]).format_map(data)
        return subject, body.format_map(data)
    except KeyError as e:
        raise TemplateError(f"Template '{name}' needs a value for {e}") from e


class Mailer:
    """Renders templates and sends them over SMTP."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str = "",
        password: str = "",
        sender: str = "",
        timeout: float = 10.0,
        starttls: bool = False,
        templates_dir: Optional[Path] = None,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender
        self.timeout = timeout
        self.starttls = starttls
        self.templates_dir = templates_dir or TEMPLATES_DIR

    @classmethod
    def from_settings(cls, settings) -> "Mailer":
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password.get_secret_value(),
            sender=settings.smtp_sender,
            timeout=settings.smtp_timeout,
            starttls=settings.smtp_starttls,
        )

    def build_message(self, recipient: str, template: str, data: Mapping[str, str]) -> MIMEMultipart:
        subject, body = render_template(template, data, self.templates_dir)
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = recipient
        msg.attach(MIMEText(body, "plain", "utf-8"))
        return msg

    def send(self, recipient: str, template: str, data: Mapping[str, str]) -> None:
        """Render and send one email. Blocking; errors propagate."""
        msg = self.build_message(recipient, template, data)
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            if self.starttls:
                server.starttls()
            if self.username:
                server.login(self.username, self.password)
            server.send_message(msg)
        logger.info(f"Sent '{template}' email to {recipient}")
