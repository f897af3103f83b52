"""Calling a remote newsletter queue over HTTP."""

import asyncio
import os

from newsletter_queue import NewsletterQueueHttpClient, RemoteHttpError


async def main():
    client = NewsletterQueueHttpClient(
        os.getenv("NEWSLETTER_QUEUE_URL", "http://localhost:8000"),
        auth_token=os.getenv("NEWSLETTER_QUEUE_AUTH_TOKEN"),
    )

    try:
        result = await client.send_campaign("spring-2026")
        print(f"Queued {result['queued']} emails")
    except RemoteHttpError as e:
        print(f"Could not send campaign: {e}")

    print(await client.get_queue_status())


if __name__ == "__main__":
    asyncio.run(main())
