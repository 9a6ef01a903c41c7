"""NiceGUI chat interface driven by ChatSession."""

from nicegui import ui

from streamchat.client.consumer import StreamConsumer
from streamchat.client.errors import ConsumerError
from streamchat.client.session import ChatSession, LocalMessage
from streamchat.models.schemas import Role
from streamchat.settings import get_runner_config

CUSTOM_CSS = """
<style>
    body { background: #f5f5f5; min-height: 100vh; }

    .app-container {
        background: white;
        border-radius: 12px;
        box-shadow: 0 2px 8px rgba(0, 0, 0, 0.1);
        overflow: hidden;
    }

    .header { background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); }

    .message-user {
        background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
        color: white;
        border-radius: 18px 18px 4px 18px;
    }

    .message-assistant {
        background: #f3f4f6;
        color: #1f2937;
        border-radius: 18px 18px 18px 4px;
    }

    .message-failed { border: 1px solid #fca5a5; }
</style>
"""


@ui.page("/")
async def chat_page(chat_id: str | None = None) -> None:
    """Main chat page. ``?chat_id=<id>`` reopens a stored conversation."""
    ui.add_head_html(CUSTOM_CSS)

    consumer = StreamConsumer(get_runner_config().resolved_api_base_url)
    ui.context.client.on_disconnect(consumer.aclose)

    messages_container: ui.column
    input_field: ui.textarea
    send_btn: ui.button

    def render_message(msg: LocalMessage) -> None:
        is_user = msg.role is Role.USER
        align = "justify-end" if is_user else "justify-start"
        bubble = "message-user" if is_user else "message-assistant"
        if msg.failed and not is_user:
            bubble += " message-failed"

        with ui.row().classes(f"w-full {align}"):
            with ui.column().classes("max-w-[70%] gap-1"):
                with ui.element("div").classes(f"px-4 py-3 {bubble}"):
                    if is_user:
                        ui.label(msg.content).classes("text-sm whitespace-pre-wrap")
                    elif msg.content:
                        ui.markdown(msg.content).classes("text-sm")
                    else:
                        ui.spinner("dots")
                ui.label(msg.created_at.strftime("%I:%M %p")).classes(
                    f"text-[10px] text-gray-400 {'self-end' if is_user else 'self-start'}"
                )

    def refresh_messages() -> None:
        messages_container.clear()
        with messages_container:
            for msg in session.messages:
                render_message(msg)
        if session.is_streaming:
            send_btn.disable()
        else:
            send_btn.enable()

    session = ChatSession(consumer, on_change=lambda: refresh_messages())

    async def send_message() -> None:
        text = input_field.value or ""
        if not text.strip() or session.is_streaming:
            return
        input_field.value = ""
        if not await session.send_message(text):
            ui.notify("The assistant could not answer this message", type="negative")

    def new_chat() -> None:
        if session.is_streaming:
            return
        session.reset()

    # === UI Layout ===
    with (
        ui.element("div").classes("w-full min-h-screen p-4 md:p-8"),
        ui.column().classes("w-full max-w-3xl mx-auto app-container").style(
            "height: calc(100vh - 4rem)"
        ),
    ):
        with ui.row().classes("w-full header px-5 py-4 items-center justify-between"):
            with ui.row().classes("items-center gap-3"):
                ui.icon("smart_toy").classes("text-white text-3xl")
                ui.label("StreamChat").classes("text-lg font-semibold text-white")
            ui.button(icon="add", on_click=new_chat).props("flat round color=white")

        with (
            ui.scroll_area().classes("flex-grow w-full bg-gray-50"),
            ui.column().classes("w-full p-5"),
        ):
            messages_container = ui.column().classes("w-full gap-4")

        with ui.row().classes("w-full p-4 gap-3 items-end bg-white border-t"):
            input_field = (
                ui.textarea(placeholder="Type a message...")
                .props("autogrow outlined dense rows=1")
                .classes("flex-grow")
                .on("keydown.enter.prevent", send_message)
            )
            send_btn = ui.button(icon="send", on_click=send_message).props("round unelevated")

    refresh_messages()
    if chat_id:
        await ui.context.client.connected()
        try:
            await session.load(chat_id)
        except ConsumerError as e:
            ui.notify(str(e), type="warning")


def main() -> None:
    """Serve the UI alone; the API is reached at API_BASE_URL."""
    runner = get_runner_config()
    ui.run(title="StreamChat", host=runner.host, port=runner.ui_port, reload=False)


if __name__ in {"__main__", "__mp_main__"}:
    main()
