"""
Email sender for the Tender Portal Monitor using Microsoft Outlook.

Uses the Windows COM interface; pywin32 is only needed on the machine
that actually sends mail.
"""

import logging
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class OutlookError(Exception):
    """Raised when Outlook operations fail."""

    pass


class OutlookSender:
    """
    Sends emails via Microsoft Outlook using COM interface.

    Requires Microsoft Outlook to be installed and configured.
    """

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize Outlook sender.

        Args:
            config: The ``email`` section of the configuration
        """
        self.config = config
        self.sender = config.get("sender", "")
        self.recipients_to = config.get("recipients", {}).get("to", [])
        self.recipients_cc = config.get("recipients", {}).get("cc", [])
        self.subject_template = config.get("subject_template", "New Tender: {title}")
        self.outlook = None

    def _get_outlook(self):
        """
        Get or create Outlook application instance.

        Raises:
            OutlookError: If Outlook cannot be accessed
        """
        if self.outlook is None:
            try:
                import win32com.client
            except ImportError as e:
                raise OutlookError(
                    "pywin32 not installed. Install with: pip install pywin32"
                ) from e

            try:
                self.outlook = win32com.client.Dispatch("Outlook.Application")
                logger.debug("Connected to Outlook")
            except Exception as e:
                raise OutlookError(f"Failed to connect to Outlook: {e}") from e

        return self.outlook

    def send_email(
        self,
        subject: str,
        body: str,
        to: Optional[List[str]] = None,
        cc: Optional[List[str]] = None,
    ) -> bool:
        """
        Send an email via Outlook.

        Args:
            subject: Email subject
            body: Email body text
            to: Recipient addresses (uses config if not provided)
            cc: CC addresses (uses config if not provided)

        Returns:
            True if email was sent successfully

        Raises:
            OutlookError: If sending fails or there are no recipients
        """
        to_addrs = to or self.recipients_to
        cc_addrs = cc or self.recipients_cc

        if not to_addrs:
            raise OutlookError("No email recipients configured")

        outlook = self._get_outlook()

        try:
            mail = outlook.CreateItem(0)  # 0 = MailItem
            mail.To = "; ".join(to_addrs)
            mail.CC = "; ".join(cc_addrs) if cc_addrs else ""
            if self.sender:
                mail.SentOnBehalfOfName = self.sender
            mail.Subject = subject
            mail.Body = body
            mail.Send()
        except Exception as e:
            raise OutlookError(f"Failed to send email: {e}") from e

        logger.info(f"Email sent: {subject}")
        logger.debug(f"Recipients: To={to_addrs}, CC={cc_addrs}")
        return True

    def format_subject(self, **fields: Any) -> str:
        try:
            return self.subject_template.format(**fields)
        except (KeyError, IndexError, ValueError):
            return self.subject_template
