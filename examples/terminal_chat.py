"""Minimal terminal front-end for the chat core."""

import asyncio

from chat_core.api.service import get_default_service


async def main() -> None:
    service = get_default_service()
    service.load_settings()
    service.subscribe(lambda snapshot: print(f"[{len(snapshot)} messages]"))
    print("Assistant:", service.messages()[0]["content"])
    while True:
        text = await asyncio.to_thread(input, "You: ")
        if text.strip() == "/new":
            service.new_chat()
            print("Assistant:", service.messages()[0]["content"])
            continue
        if text.strip() == "/quit":
            break
        if await service.send(text):
            print("Assistant:", service.messages()[-1]["content"])


if __name__ == "__main__":
    asyncio.run(main())
