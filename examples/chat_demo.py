#!/usr/bin/env python3
"""
Chat Hub 命令行聊天演示

连接到 Hub，加入一个房间，把标准输入的每一行作为消息发送，
并实时打印房间内的消息和上下线通知。

    export CHAT_HUB_JWT_SECRET=...
    chat-hub serve &
    python examples/chat_demo.py Alice --room lobby
"""

import argparse
import asyncio
import sys
from datetime import datetime

from rich.console import Console

from chat_hub import ChatClient, HubConfig, TokenVerifier

console = Console()


def build_client(url: str, token: str) -> ChatClient:
    client = ChatClient(url, token)

    @client.event("receive_message")
    def on_message(data):
        console.print(
            f"[dim]{data.get('time', '')}[/dim] [bold]{data.get('author')}[/bold]: "
            f"{data.get('message')}"
        )

    @client.event("user_connected")
    def on_joined(data):
        console.print(f"[green]→ {data['username']} 加入了 {data['room']}[/green]")

    @client.event("user_disconnected")
    def on_left(data):
        console.print(f"[yellow]← {data['username']} 离开了 {data['room']}[/yellow]")

    @client.event("status")
    def on_status(data):
        console.print(f"[red]服务器状态: {data.get('status')}[/red]")

    return client


async def read_lines(queue: asyncio.Queue) -> None:
    loop = asyncio.get_running_loop()
    while True:
        line = await loop.run_in_executor(None, sys.stdin.readline)
        await queue.put(line)
        if not line:
            return


async def main() -> int:
    parser = argparse.ArgumentParser(description="Chat Hub console client")
    parser.add_argument("name", help="Display name")
    parser.add_argument("--room", default="lobby", help="Room to join")
    parser.add_argument("--url", help="Hub URL (default from CHAT_HUB_HOST/PORT)")
    args = parser.parse_args()

    config = HubConfig.from_env()
    token = TokenVerifier(config.require_secret()).issue_token(args.name)
    url = args.url or f"ws://{config.host}:{config.port}"

    lines: asyncio.Queue = asyncio.Queue()
    reader = asyncio.create_task(read_lines(lines))

    async with build_client(url, token) as client:
        await client.join_room(args.room)
        console.print(f"已加入房间 [bold]{args.room}[/bold]，输入消息后回车发送，Ctrl+D 退出")

        while client.connected:
            line = await lines.get()
            if not line:
                break
            text = line.strip()
            if text:
                await client.send_message(
                    args.room, args.name, text, datetime.now().strftime("%H:%M")
                )

    reader.cancel()
    return 0


if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        console.print("\n再见!")
