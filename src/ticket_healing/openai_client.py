"""
OpenAI Client for Azure OpenAI Service or OpenAI API
"""

import logging

from openai import OpenAI, AzureOpenAI, OpenAIError, PermissionDeniedError, RateLimitError

from ticket_healing.config import Settings
from ticket_healing.errors import GenerationError, BillingError

SYSTEM_MESSAGE = """You are a senior software engineer fixing bugs reported in an issue tracker.
Answer with code only. Start every file with a line "File: <relative/path>"."""

BILLING_MARKERS = ('BILLING_DISABLED', 'PERMISSION_DENIED', 'insufficient_quota', 'billing')


def get_mock_code(prompt: str) -> str:
    """Placeholder fix returned in mock mode"""
    first_lines = '\n'.join(f"// {line}" for line in prompt.split('\n')[:3])
    return f"""File: lib/fix.ts
// Mock AI-generated code fix
// Placeholder response while USE_MOCK_AI is enabled
{first_lines}

export function fixIssue(): boolean {{
  console.log('Fix implementation needed');
  return true;
}}

export default fixIssue;"""


def is_reasoning_model(model: str) -> bool:
    model = model.lower()
    return (
        model.startswith('o1') or
        model.startswith('o3') or
        'gpt-5' in model or
        'gpt5' in model
    )


class OpenAIClient:
    """Generation client backed by OpenAI chat completions"""

    def __init__(self, settings: Settings, client=None):
        self.model = settings.openai_deployment_name
        self.use_mock = settings.use_mock_ai
        self.client = client

        if self.client is not None or self.use_mock:
            return

        if not settings.openai_api_key:
            raise ValueError("OPENAI_API_KEY must be set")

        # Check if using Azure OpenAI or standard OpenAI
        if settings.openai_endpoint and "azure" in settings.openai_endpoint.lower():
            self.client = AzureOpenAI(
                azure_endpoint=settings.openai_endpoint,
                api_key=settings.openai_api_key,
                api_version=settings.openai_api_version
            )
        else:
            self.client = OpenAI(api_key=settings.openai_api_key)

    async def generate(self, prompt: str) -> str:
        """Send the prompt and return the raw completion text"""
        if self.use_mock:
            logging.warning("⚠️ Using MOCK AI mode (development only)")
            return get_mock_code(prompt)

        request_params = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_MESSAGE},
                {"role": "user", "content": prompt},
            ],
        }

        # Reasoning models reject temperature and max_tokens
        if is_reasoning_model(self.model):
            request_params["max_completion_tokens"] = 4000
        else:
            request_params["temperature"] = 0.3
            request_params["max_tokens"] = 4000

        logging.info(f"Using model: {self.model}")

        try:
            response = self.client.chat.completions.create(**request_params)
        except PermissionDeniedError as e:
            logging.error(f"⚠️ OpenAI error (billing/permissions): {str(e)}")
            raise BillingError(f"Model provider denied the request: {str(e)}") from e
        except RateLimitError as e:
            if 'insufficient_quota' in str(e):
                logging.error(f"⚠️ OpenAI error (billing/permissions): {str(e)}")
                raise BillingError(f"Model provider quota exhausted: {str(e)}") from e
            raise GenerationError(f"OpenAI generation failed: {str(e)}") from e
        except OpenAIError as e:
            message = str(e)
            if any(marker in message for marker in BILLING_MARKERS):
                raise BillingError(f"Model provider requires billing: {message}") from e
            logging.error(f"Error calling OpenAI: {message}")
            raise GenerationError(f"OpenAI generation failed: {message}") from e

        if not response.choices:
            raise GenerationError("No response generated from OpenAI")

        content = response.choices[0].message.content
        if not content:
            raise GenerationError("Empty response from OpenAI")

        return content
