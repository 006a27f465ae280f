"""
Alert handler that mails breach and failure messages over SMTP.

Parameters:
- ``to.addresses`` / ``cc.addresses`` / ``bcc.addresses``: comma or semicolon
  separated address lists; at least one of them is required
- ``subject``: message subject
- ``from.address``: sender address
- ``mail.host`` / ``mail.port``: SMTP server (default ``localhost:25``)
- ``mail.user`` / ``mail.password``: optional SMTP credentials
- ``mail.starttls``: ``true`` to upgrade the connection before login
"""

import logging
import re
import smtplib
from email.mime.text import MIMEText
from typing import Dict, List, Optional

from ..models.duration import DurationRecord
from ..validation import (
    ConfigurationError,
    handle_alert_error,
    validate_boolean,
    validate_non_empty_string,
    validate_positive_integer,
)
from .base import AlertHandler

logger = logging.getLogger(__name__)

TO_ADDRESSES_PARAM = "to.addresses"
CC_ADDRESSES_PARAM = "cc.addresses"
BCC_ADDRESSES_PARAM = "bcc.addresses"
SUBJECT_PARAM = "subject"
FROM_ADDRESS_PARAM = "from.address"
MAIL_HOST_PARAM = "mail.host"
MAIL_PORT_PARAM = "mail.port"
MAIL_USER_PARAM = "mail.user"
MAIL_PASSWORD_PARAM = "mail.password"
MAIL_STARTTLS_PARAM = "mail.starttls"

DEFAULT_SUBJECT = "Latency alert"
DEFAULT_FROM_ADDRESS = "latencymon@localhost"
DEFAULT_MAIL_HOST = "localhost"
DEFAULT_MAIL_PORT = 25
SMTP_TIMEOUT_SECONDS = 10

_ADDRESS_SEPARATORS = re.compile(r"[,;]")


def parse_addresses(value: Optional[str]) -> List[str]:
    """Split a comma or semicolon separated address list, dropping blanks."""
    if not value:
        return []
    return [address.strip() for address in _ADDRESS_SEPARATORS.split(value) if address.strip()]


class MailAlertHandler(AlertHandler):
    """Sends one plain-text mail per alert."""

    def __init__(self, alert_handler_id: Optional[str] = None,
                 parameters: Optional[Dict[str, str]] = None):
        super().__init__(alert_handler_id, parameters)
        self.to_addresses: List[str] = []
        self.cc_addresses: List[str] = []
        self.bcc_addresses: List[str] = []
        self.subject = DEFAULT_SUBJECT
        self.from_address = DEFAULT_FROM_ADDRESS
        self.host = DEFAULT_MAIL_HOST
        self.port = DEFAULT_MAIL_PORT
        self.user: Optional[str] = None
        self.password: Optional[str] = None
        self.starttls = False

    @property
    def recipients(self) -> List[str]:
        return [*self.to_addresses, *self.cc_addresses, *self.bcc_addresses]

    def init(self) -> None:
        logger.info(f"Initialising mail alert handler '{self.alert_handler_id}'")
        super().init()

        self.to_addresses = parse_addresses(self._parameters.get(TO_ADDRESSES_PARAM))
        self.cc_addresses = parse_addresses(self._parameters.get(CC_ADDRESSES_PARAM))
        self.bcc_addresses = parse_addresses(self._parameters.get(BCC_ADDRESSES_PARAM))
        if not self.recipients:
            raise ConfigurationError(
                f"Mail alert handler '{self.alert_handler_id}' needs at least one "
                f"{TO_ADDRESSES_PARAM}, {CC_ADDRESSES_PARAM} or {BCC_ADDRESSES_PARAM} entry"
            )

        self.subject = self._parameters.get(SUBJECT_PARAM, DEFAULT_SUBJECT)
        self.from_address = validate_non_empty_string(
            self._parameters.get(FROM_ADDRESS_PARAM, DEFAULT_FROM_ADDRESS),
            field_name=FROM_ADDRESS_PARAM,
        )
        self.host = validate_non_empty_string(
            self._parameters.get(MAIL_HOST_PARAM, DEFAULT_MAIL_HOST),
            field_name=MAIL_HOST_PARAM,
        )
        self.port = validate_positive_integer(
            self._parameters.get(MAIL_PORT_PARAM, DEFAULT_MAIL_PORT),
            min_value=1,
            max_value=65535,
            field_name=MAIL_PORT_PARAM,
        )
        self.user = self._parameters.get(MAIL_USER_PARAM) or None
        self.password = self._parameters.get(MAIL_PASSWORD_PARAM) or None
        self.starttls = validate_boolean(
            self._parameters.get(MAIL_STARTTLS_PARAM, "false"),
            field_name=MAIL_STARTTLS_PARAM,
        )

        self._mark_initialized()
        logger.info(
            f"Mail alert handler '{self.alert_handler_id}' sending to "
            f"{len(self.recipients)} recipient(s) via {self.host}:{self.port}"
        )

    def latency_exceeded_cap(self, requirement, record: DurationRecord) -> None:
        self.send(self.prepare_cap_exceeded_message(requirement, record))

    def latency_deviation_exceeded_tolerance(self, requirement, record: DurationRecord,
                                             deviation: float, mean: float) -> None:
        self.send(self.prepare_tolerance_exceeded_message(requirement, record, deviation, mean))

    def work_category_failed(self, requirement, record: DurationRecord) -> None:
        self.send(self.prepare_work_failure_message(requirement, record))

    def build_message(self, text: str) -> MIMEText:
        message = MIMEText(text)
        message["Subject"] = self.subject
        message["From"] = self.from_address
        if self.to_addresses:
            message["To"] = ", ".join(self.to_addresses)
        if self.cc_addresses:
            message["Cc"] = ", ".join(self.cc_addresses)
        return message

    def send(self, text: str) -> bool:
        """
        Mail one alert. Delivery failures are logged, never raised.

        Returns:
            True if the SMTP server accepted the message
        """
        self._assert_initialized()
        message = self.build_message(text)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=SMTP_TIMEOUT_SECONDS) as server:
                if self.starttls:
                    server.starttls()
                if self.user and self.password:
                    server.login(self.user, self.password)
                server.send_message(message, to_addrs=self.recipients)
        except (smtplib.SMTPException, OSError) as e:
            handle_alert_error(
                error=e,
                handler_id=self.alert_handler_id,
                severity="error",
                reraise=False,
                logger=logger,
            )
            logger.error(f"Undelivered alert message:\n{text}")
            return False

        logger.debug(f"Alert mailed by '{self.alert_handler_id}' to {self.recipients}")
        return True
