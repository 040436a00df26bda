"""
Agentic Ticket Healing - Ticket Healer Agent
Main Azure Function that handles Jira bug webhooks
"""

import azure.functions as func
import logging
import json

from ticket_healing.config import Settings
from ticket_healing.errors import InvalidPayloadError, GenerationError, BillingError
from ticket_healing.github_operations import GitHubOperations
from ticket_healing.openai_client import OpenAIClient
from ticket_healing.pipeline import TicketPipeline, STATUS_BLOCKED, STATUS_VALIDATION_FAILED
from ticket_healing.webhook import ticket_from_payload

app = func.FunctionApp()

STATUS_CODES = {
    STATUS_BLOCKED: 422,
    STATUS_VALIDATION_FAILED: 422,
}


def json_response(body: dict, status_code: int) -> func.HttpResponse:
    return func.HttpResponse(
        json.dumps(body, indent=2),
        mimetype="application/json",
        status_code=status_code
    )


def build_pipeline(settings: Settings) -> TicketPipeline:
    return TicketPipeline(
        settings=settings,
        source_control=GitHubOperations(settings),
        generator=OpenAIClient(settings),
    )


################################################################################
# Webhook Handler - Entry Point
################################################################################

@app.function_name(name="HandleTicket")
@app.route(route="HandleTicket", auth_level=func.AuthLevel.FUNCTION, methods=["POST"])
async def handle_ticket(req: func.HttpRequest) -> func.HttpResponse:
    """
    Receives webhook from Jira when a bug ticket is created or updated.
    """
    return await process_webhook(req)


async def process_webhook(req: func.HttpRequest, pipeline_factory=None) -> func.HttpResponse:
    """Validate the payload, run the pipeline and map the outcome to HTTP"""
    logging.info('Jira webhook received')

    try:
        payload = req.get_json()
    except ValueError as e:
        logging.error(f"Invalid JSON in request: {str(e)}")
        return json_response({"error": "Invalid JSON payload"}, 400)

    try:
        ticket = ticket_from_payload(payload)
    except InvalidPayloadError as e:
        logging.error(f"Rejected webhook payload: {str(e)}")
        return json_response({"error": str(e)}, 400)

    logging.info(f"Ticket received: {ticket.key} ({ticket.priority or 'no priority'})")

    try:
        pipeline = (pipeline_factory or build_pipeline)(Settings.from_env())
        result = await pipeline.run(ticket)

    except BillingError as e:
        return json_response({"error": "Failed to generate code", "details": str(e), "hint": e.hint}, 402)

    except GenerationError as e:
        return json_response({"error": "Failed to generate code", "details": str(e)}, 502)

    except Exception as e:
        logging.error(f"Error processing ticket {ticket.key}: {str(e)}", exc_info=True)
        return json_response({"error": "Internal server error"}, 500)

    logging.info(f"Processing complete for {ticket.key}: {result.status}")
    return json_response(result.to_dict(), STATUS_CODES.get(result.status, 202))
