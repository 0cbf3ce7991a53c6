from __future__ import annotations


class EngineError(Exception):
    """Base class for failures the apply pipeline knows how to classify."""

    kind = "engine_error"
    recoverable = True


class NavigationTimeout(EngineError):
    kind = "navigation_timeout"


class FieldNotFound(EngineError):
    kind = "field_not_found"

    def __init__(self, logical_name: str):
        super().__init__(f"no strategy matched field '{logical_name}'")
        self.logical_name = logical_name


class UploadFailure(EngineError):
    kind = "upload_failure"


class SubmissionIndeterminate(EngineError):
    kind = "submission_indeterminate"


class SubmissionValidationError(EngineError):
    kind = "submission_validation_error"

    def __init__(self, matched_term: str):
        super().__init__(f"form validation error: {matched_term}")
        self.matched_term = matched_term


class ProxyExhausted(EngineError):
    kind = "proxy_exhausted"


class ProxyProviderError(EngineError):
    kind = "proxy_provider_error"


class VisionAnalysisFailure(EngineError):
    kind = "vision_analysis_failure"


class BlockedByVerification(EngineError):
    """CAPTCHA or human-verification wall. Never retried automatically."""

    kind = "verification_required"
    recoverable = False
