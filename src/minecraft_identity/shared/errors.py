#    Copyright 2025 FAO
#
#    Licensed under the Apache License, Version 2.0 (the "License");
#    you may not use this file except in compliance with the License.
#    You may obtain a copy of the License at
#
#        http://www.apache.org/licenses/LICENSE-2.0
#
#    Unless required by applicable law or agreed to in writing, software
#    distributed under the License is distributed on an "AS IS" BASIS,
#    WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#    See the License for the specific language governing permissions and
#    limitations under the License.
#
#    Author: Carlo Cancellieri (ccancellieri@gmail.com)
#    Company: FAO, Viale delle Terme di Caracalla, 00100 Rome, Italy
#    Contact: copyright@fao.org - http://fao.org/contact-us/terms/en/

from typing import Optional

# XSTS "XErr" codes returned with HTTP 401
XERR_NO_XBOX_ACCOUNT = 2148916233
XERR_COUNTRY_UNAVAILABLE = 2148916235
XERR_ADULT_VERIFICATION = (2148916236, 2148916237)
XERR_CHILD_ACCOUNT = 2148916238


class IdentityException(Exception):
    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"[{status_code}] {detail}")


class UpstreamError(IdentityException):
    """
    An upstream hop answered with an unexpected status, an unreadable body,
    or could not be reached at all.

    The upstream status and body are kept for logging only; they are never
    shown to the end user.
    """

    def __init__(
        self,
        hop: str,
        upstream_status: Optional[int] = None,
        upstream_body: Optional[str] = None,
        reason: Optional[str] = None,
    ):
        self.hop = hop
        self.upstream_status = upstream_status
        self.upstream_body = upstream_body
        if reason is None:
            reason = f"failed with status: {upstream_status}"
        super().__init__(502, f"{hop} {reason}")


def xbox_error_message(error_code: int) -> str:
    """Returns a user-friendly message for an XSTS error code."""
    if error_code == XERR_NO_XBOX_ACCOUNT:
        return ("This Microsoft account doesn't have an Xbox account. "
                "Please create an Xbox account first at xbox.com/live")
    if error_code == XERR_COUNTRY_UNAVAILABLE:
        return "Xbox Live is not available in your country."
    if error_code in XERR_ADULT_VERIFICATION:
        return "This account requires adult verification (South Korea)."
    if error_code == XERR_CHILD_ACCOUNT:
        return "This is a child account and needs to be added to a family."
    return f"Xbox Live authentication failed (Error code: {error_code})"


class XboxPolicyError(IdentityException):
    """
    XSTS refused the account for a policy reason (no Xbox profile, country,
    age, family). Reflects account state, so it is never worth retrying.
    """

    def __init__(self, error_code: int, redirect_url: Optional[str] = None):
        self.error_code = error_code
        self.redirect_url = redirect_url
        super().__init__(403, xbox_error_message(error_code))

    @property
    def needs_xbox_account(self) -> bool:
        return self.error_code == XERR_NO_XBOX_ACCOUNT


class IdentityBrokerException(IdentityException):
    """Final, caller-facing failure of a login attempt."""

    def __init__(self, detail: str, status_code: int = 502):
        super().__init__(status_code, detail)
