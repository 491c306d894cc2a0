# stock_dashboard/services/gmail_service.py
import base64
import logging

import requests
import streamlit as st
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials

logger = logging.getLogger(__name__)

GMAIL_SEND_URL = "https://gmail.googleapis.com/gmail/v1/users/me/messages/send"
GMAIL_SCOPES = ["https://www.googleapis.com/auth/gmail.send"]
TOKEN_URI = "https://oauth2.googleapis.com/token"


def encode_email(to: str, subject: str, body: str) -> str:
    """Builds the RFC 822 message Gmail expects, base64url-encoded without padding."""
    content = "\r\n".join([
        "From: me",
        f"To: {to}",
        f"Subject: {subject}",
        "",
        body,
    ]).strip()
    encoded = base64.urlsafe_b64encode(content.encode("utf-8")).decode("ascii")
    return encoded.rstrip("=")


def get_gmail_credentials():
    """OAuth user credentials from the [gmail] block of secrets.toml, or None."""
    try:
        gmail_secrets = st.secrets.get("gmail", {})
    except Exception:
        logger.info("st.secrets not available; Gmail is not configured.")
        return None

    if not gmail_secrets.get("refresh_token"):
        logger.error("Gmail refresh token is not configured in secrets.toml")
        return None

    return Credentials(
        token=None,
        refresh_token=gmail_secrets["refresh_token"],
        client_id=gmail_secrets.get("client_id"),
        client_secret=gmail_secrets.get("client_secret"),
        token_uri=gmail_secrets.get("token_uri", TOKEN_URI),
        scopes=GMAIL_SCOPES,
    )


def send_email_via_gmail(to: str, subject: str, body: str, credentials=None) -> bool:
    """
    Sends a plain-text email from the configured Gmail account.

    :param to: Recipient address.
    :param subject: Subject line.
    :param body: Plain-text body.
    :param credentials: google.oauth2 credentials; read from secrets when omitted.
    :return: True when Gmail accepted the message, False otherwise.
    """
    if not to:
        logger.error("No recipient given for the Gmail send.")
        return False

    credentials = credentials or get_gmail_credentials()
    if credentials is None:
        return False

    try:
        if not credentials.valid:
            credentials.refresh(Request())
        response = requests.post(
            GMAIL_SEND_URL,
            headers={"Authorization": f"Bearer {credentials.token}"},
            json={"raw": encode_email(to, subject, body)},
            timeout=30,
        )
        response.raise_for_status()
        logger.info(f"Email sent to {to} (message id {response.json().get('id')}).")
        return True
    except Exception as e:
        logger.error(f"Error sending email via Gmail API: {e}")
        return False
