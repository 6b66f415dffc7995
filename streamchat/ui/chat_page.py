"""NiceGUI chat interface driven by ChatSession."""

import json

from nicegui import events, ui

from streamchat.client.config import get_client_config
from streamchat.client.model import ModelClient
from streamchat.client.store import StoreClient
from streamchat.models.schemas import Message, Reaction, Role
from streamchat.session import ChatSession, UploadedFile, format_file_size
from streamchat.session.state import Clipboard

CUSTOM_CSS = """
<link href="https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600&display=swap"
      rel="stylesheet">
<style>
    * { font-family: 'Inter', sans-serif; }

    body { background: #f5f5f5; min-height: 100vh; }

    .app-container {
        background: white;
        border-radius: 12px;
        box-shadow: 0 2px 8px rgba(0, 0, 0, 0.1);
        overflow: hidden;
    }

    .sidebar { background: #f9fafb; border-right: 1px solid #e5e7eb; }
    .history-item { border-radius: 8px; cursor: pointer; }
    .history-item:hover { background: #eef2ff; }
    .history-item.active { background: #e0e7ff; }

    .message-user {
        background: #4f46e5;
        color: white;
        border-radius: 18px 18px 4px 18px;
    }

    .message-assistant {
        background: #f3f4f6;
        color: #1f2937;
        border-radius: 18px 18px 18px 4px;
    }

    .avatar { background: #6b7280; color: white; font-size: 11px; font-weight: 600; }
    .avatar-user { background: #4f46e5; }

    .input-box {
        background: #f9fafb;
        border: 1px solid #e5e7eb;
        border-radius: 12px;
    }
    .input-box:focus-within { border-color: #4f46e5; }
</style>
"""


async def _write_clipboard(text: str) -> None:
    written = await ui.run_javascript(
        "navigator.clipboard"
        f" ? navigator.clipboard.writeText({json.dumps(text)}).then(() => true, () => false)"
        " : false"
    )
    if not written:
        raise RuntimeError("Browser rejected the clipboard write")


def build_session(clipboard: Clipboard) -> ChatSession:
    """Create a session with clients configured from the environment."""
    config = get_client_config()
    return ChatSession(StoreClient(config), ModelClient(config), config, clipboard=clipboard)


@ui.page("/")
def chat_page() -> None:
    """Main chat page."""
    ui.add_head_html(CUSTOM_CSS)

    session = build_session(_write_clipboard)

    def render_avatar(message: Message) -> None:
        css = "avatar avatar-user" if message.role == Role.USER else "avatar"
        with ui.element("div").classes(f"w-9 h-9 rounded-full flex items-center justify-center {css}"):
            ui.label(message.avatar_fallback)

    def render_actions(message: Message) -> None:
        with ui.row().classes("gap-1"):
            copied = session.copied_message_id == message.id
            ui.button(
                icon="check" if copied else "content_copy",
                on_click=lambda m=message: session.copy_message(m.id),
            ).props("flat dense round size=sm").mark("copy")
            for kind, icon in ((Reaction.UPVOTE, "thumb_up"), (Reaction.DOWNVOTE, "thumb_down")):
                color = "primary" if message.reaction == kind else "grey"
                ui.button(
                    icon=icon,
                    on_click=lambda m=message, k=kind: session.toggle_reaction(m.id, k),
                ).props(f"flat dense round size=sm color={color}")

    def render_message(message: Message) -> None:
        is_user = message.role == Role.USER
        align = "justify-end" if is_user else "justify-start"
        bubble = "message-user" if is_user else "message-assistant"

        with ui.row().classes(f"w-full {align} gap-3 items-end"):
            if not is_user:
                render_avatar(message)
            with ui.column().classes("max-w-[70%] gap-1"):
                with ui.element("div").classes(f"px-4 py-3 {bubble}"):
                    if message.id == session.streaming_message_id and not message.content:
                        ui.spinner("dots").classes("text-gray-500")
                    elif message.markdown:
                        ui.markdown(message.content).classes("text-sm leading-relaxed")
                    else:
                        ui.label(message.content).classes("text-sm whitespace-pre-wrap")
                    for attachment in message.attachments or []:
                        if attachment.preview:
                            ui.image(attachment.preview).classes("w-40 rounded mt-2")
                        else:
                            ui.label(f"{attachment.name} ({format_file_size(attachment.size)})").classes(
                                "text-xs opacity-80"
                            )
                with ui.row().classes("items-center gap-2"):
                    ui.label(f"{message.name} · {message.created_at.astimezone().strftime('%I:%M %p')}").classes(
                        "text-[10px] text-gray-400"
                    )
                    if not is_user and message.id != session.streaming_message_id:
                        render_actions(message)
            if is_user:
                render_avatar(message)

    @ui.refreshable
    def history_view() -> None:
        if session.is_loading_history and not session.conversations:
            with ui.row().classes("items-center gap-2 p-4"):
                ui.spinner()
                ui.label("Loading conversations...").classes("text-sm text-gray-500")
            return
        for conversation in session.conversations:
            active = "active" if conversation.id == session.active_conversation_id else ""
            with (
                ui.column()
                .classes(f"history-item w-full px-3 py-2 gap-0 {active}")
                .on("click", lambda c=conversation: session.select_conversation(c.id))
            ):
                ui.label(conversation.title).classes("text-sm font-medium")
                ui.label(conversation.preview).classes("text-xs text-gray-500 truncate w-full")

    @ui.refreshable
    def messages_view() -> None:
        for message in session.active_messages:
            render_message(message)
        if session.is_generating and session.streaming_message_id is None:
            with ui.row().classes("items-center gap-2"):
                ui.spinner("dots")
                ui.label("AI is thinking...").classes("text-xs text-gray-500")

    @ui.refreshable
    def attachments_view() -> None:
        if not session.attachments:
            return
        with ui.row().classes("w-full gap-2 px-4 pt-2 items-center"):
            for attachment in session.attachments:
                with ui.column().classes("items-center gap-0"):
                    ui.image(attachment.preview).classes("w-16 h-16 rounded")
                    ui.button(
                        icon="close",
                        on_click=lambda a=attachment: session.remove_attachment(a.id),
                    ).props("flat dense round size=xs")
            ui.button(icon="delete", on_click=session.clear_attachments).props("flat round")

    def model_options() -> list[str]:
        return session.models or [session.selected_model]

    def refresh() -> None:
        history_view.refresh()
        messages_view.refresh()
        attachments_view.refresh()
        if model_select.options != model_options():
            model_select.set_options(model_options(), value=session.selected_model)

    unsubscribe = session.subscribe(refresh)

    async def handle_upload(e: events.UploadEventArguments) -> None:
        file = UploadedFile(name=e.name, type=e.type, content=e.content.read())
        await session.stage_files([file])
        upload.reset()

    async def send_message() -> None:
        await session.submit()

    async def initial_load() -> None:
        await session.load_models()
        await session.load_initial()

    async def shutdown() -> None:
        unsubscribe()
        await session.aclose()

    ui.context.client.on_disconnect(shutdown)

    # === UI Layout ===
    with (
        ui.element("div").classes("w-full min-h-screen p-4 md:p-8"),
        ui.row().classes("w-full max-w-5xl mx-auto app-container no-wrap gap-0").style(
            "height: calc(100vh - 4rem)"
        ),
    ):
        # Sidebar
        with ui.column().classes("sidebar w-64 h-full p-3 gap-2"):
            ui.label("Recent chats").classes("text-xs uppercase text-gray-400 px-1")
            ui.button("New chat", icon="add", on_click=session.new_conversation).props("outline").classes("w-full")
            with ui.scroll_area().classes("flex-grow w-full"):
                history_view()

        # Chat area
        with ui.column().classes("flex-grow h-full gap-0"):
            with ui.row().classes("w-full px-5 py-3 items-center justify-between border-b"):
                ui.label().bind_text_from(
                    session, "active_conversation", lambda c: c.title if c else "Untitled chat"
                ).classes("text-lg font-semibold")
                model_select = (
                    ui.select(model_options(), value=session.selected_model, label="Model")
                    .bind_value(session, "selected_model")
                    .props("dense outlined")
                    .classes("w-48")
                )

            with ui.scroll_area().classes("flex-grow w-full bg-gray-50"), ui.column().classes("w-full p-5 gap-4"):
                messages_view()

            attachments_view()

            with ui.row().classes("w-full p-4 gap-3 items-end bg-white border-t no-wrap"):
                upload = (
                    ui.upload(on_upload=handle_upload, multiple=True, auto_upload=True)
                    .props("accept=image/* flat dense")
                    .classes("w-32")
                )
                with ui.element("div").classes("flex-grow input-box px-3 py-2"):
                    (
                        ui.textarea(placeholder="Message Ollama...")
                        .bind_value(session, "draft")
                        .props("autogrow borderless dense rows=1")
                        .classes("w-full")
                        .on("keydown.enter.prevent", send_message)
                    )
                (
                    ui.button(icon="send", on_click=send_message)
                    .props("round unelevated")
                    .mark("send")
                    .bind_enabled_from(session, "is_generating", backward=lambda generating: not generating)
                )

    ui.timer(0.1, initial_load, once=True)


def main() -> None:
    ui.run(title="streamchat", port=8080, reload=False)


if __name__ == "__main__":
    main()
