"""Domain errors and their user-facing messages.

Services raise these; routers turn them into HTTPException carrying the fixed
message.
"""

from typing import Optional

GENERIC_IMAGE_ERROR = "Something went wrong while generating the image. Please try again."


class RecipeBoxError(Exception):
    """Base error. ``user_message`` is what the UI shows."""

    status_code: int = 500
    user_message: str = GENERIC_IMAGE_ERROR

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail or self.user_message)
        self.detail = detail


class NotAuthenticated(RecipeBoxError):
    status_code = 401
    user_message = "Please log in to generate images."


class NotAuthorized(RecipeBoxError):
    status_code = 403
    user_message = "Not authorized"


class RecipeNotFound(RecipeBoxError):
    status_code = 404
    user_message = "Recipe not found. Please refresh the page and try again."


class ImageNotFound(RecipeBoxError):
    status_code = 404
    user_message = "Image not found. Please refresh the page and try again."


class ImageNotReady(RecipeBoxError):
    status_code = 409
    user_message = "Image is not yet available."


class GenerationDisabled(RecipeBoxError):
    status_code = 403
    user_message = "Image generation is disabled for your account."


class DailyLimitReached(RecipeBoxError):
    status_code = 429

    def __init__(self, limit: int = 10):
        self.user_message = (
            f"You've reached the daily limit of {limit} image generations. "
            "Please try again tomorrow."
        )
        super().__init__(f"Daily image generation limit reached ({limit}/day)")


class ServiceUnavailable(RecipeBoxError):
    """Provider credentials are missing."""
    status_code = 503
    user_message = "Image generation service is temporarily unavailable. Please try again later."


class ProviderError(RecipeBoxError):
    status_code = 502
    user_message = "Image generation failed. The AI service may be busy. Please try again."


class NoImageInResponse(RecipeBoxError):
    status_code = 502
    user_message = "Image generation failed. Please try again."


class DownloadFailed(RecipeBoxError):
    status_code = 502
    user_message = "Failed to process the generated image. Please try again."


class UploadFailed(RecipeBoxError):
    status_code = 502
    user_message = "Failed to save the image. Please try again."


def user_message(exc: BaseException) -> str:
    """Map any exception to the message shown to the family."""
    if isinstance(exc, RecipeBoxError):
        return exc.user_message
    return GENERIC_IMAGE_ERROR
