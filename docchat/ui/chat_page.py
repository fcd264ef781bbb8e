"""NiceGUI chat interface with a document context panel."""

import logging

from nicegui import events, ui

from docchat.models.schemas import ChatMessage, Role
from docchat.parsing.documents import SUPPORTED_EXTENSIONS, UNSUPPORTED_TYPE_MESSAGE, is_supported
from docchat.ui.api_client import ChatApiClient, ChatClientError
from docchat.ui.context_aggregator import DocumentCollection, DuplicateDocumentError

logger = logging.getLogger(__name__)

CUSTOM_CSS = """
<style>
    body { background: #f1f5f9; }
    .context-panel { background: #1e293b; color: #e2e8f0; }
    .message-user {
        background: #6366f1;
        color: white;
        border-radius: 18px 18px 4px 18px;
    }
    .message-model {
        background: white;
        color: #1f2937;
        border: 1px solid #e2e8f0;
        border-radius: 4px 18px 18px 18px;
    }
    .typing-dot {
        width: 8px; height: 8px;
        background: #64748b;
        border-radius: 50%;
        animation: pulse 1.4s infinite ease-in-out;
    }
    .typing-dot:nth-child(2) { animation-delay: 0.2s; }
    .typing-dot:nth-child(3) { animation-delay: 0.4s; }
    @keyframes pulse { 0%, 100% { opacity: 0.3; } 50% { opacity: 1; } }
</style>
"""


class ChatState:
    """Everything the page knows about one browser tab's chat."""

    def __init__(self) -> None:
        self.documents = DocumentCollection()
        self.context: str = ""
        self.messages: list[ChatMessage] = []
        self.session_id: str | None = None
        self.is_streaming: bool = False
        self.is_parsing: bool = False
        self.error: str | None = None

    @property
    def is_chatting(self) -> bool:
        return bool(self.messages)

    def sync_context(self) -> None:
        """Recompute the context from the loaded documents.

        Discards any manual edit of the context text.
        """
        self.context = self.documents.context

    def add_message(self, role: Role, content: str) -> ChatMessage:
        message = ChatMessage(role=role, content=content)
        self.messages.append(message)
        return message

    def discard_if_empty(self, message: ChatMessage) -> None:
        """Drop a model reply that never received any text."""
        if not message.content:
            self.messages = [m for m in self.messages if m is not message]


@ui.page("/")
def chat_page() -> None:
    """Main chat page."""
    ui.add_head_html(CUSTOM_CSS)
    state = ChatState()
    api = ChatApiClient()

    live_container: ui.column
    input_field: ui.input
    send_btn: ui.button
    start_btn: ui.button

    def render_message(message: ChatMessage) -> ui.markdown | ui.label:
        is_user = message.role == Role.USER
        align = "justify-end" if is_user else "justify-start"
        with ui.row().classes(f"w-full {align} gap-3 items-start no-wrap"):
            if not is_user:
                ui.icon("shield").classes("text-3xl text-slate-500")
            with ui.element("div").classes(
                f"px-4 py-3 max-w-[75%] {'message-user' if is_user else 'message-model'}"
            ):
                if is_user:
                    body = ui.label(message.content).classes("whitespace-pre-wrap")
                else:
                    body = ui.markdown(message.content)
            if is_user:
                ui.icon("person").classes("text-3xl text-slate-500")
        return body

    @ui.refreshable
    def transcript() -> None:
        if not state.messages:
            with ui.column().classes("w-full items-center text-center mt-16 gap-2"):
                ui.icon("shield").classes("text-8xl text-slate-400")
                ui.label("Welcome!").classes("text-2xl font-semibold text-slate-700")
                ui.label(
                    "Press 'Start Chat' to begin. Optionally, upload document(s) "
                    "first to provide specific context for our discussion."
                ).classes("max-w-md text-slate-500")
            return
        for message in state.messages:
            render_message(message)
        if state.error:
            ui.label(f"Error: {state.error}").classes("w-full text-center text-red-500 my-4")

    @ui.refreshable
    def document_list() -> None:
        if state.is_parsing:
            ui.label("Parsing file...").classes("text-sm text-slate-400")
        if not len(state.documents):
            return
        with ui.row().classes("w-full justify-between items-center"):
            ui.label(f"Loaded Documents ({len(state.documents)})").classes(
                "text-sm font-medium text-slate-300"
            )
            ui.button("Clear All", on_click=clear_context).props("flat dense size=sm color=grey-5")
        for name in state.documents.names:
            with ui.row().classes("w-full justify-between items-center bg-slate-700 rounded px-2 no-wrap"):
                ui.label(name).classes("text-xs text-indigo-300 truncate")
                ui.button(icon="close", on_click=lambda n=name: delete_file(n)).props(
                    "flat dense round size=sm color=grey-5"
                )

    def refresh_controls() -> None:
        if state.is_chatting and not state.is_streaming:
            input_field.enable()
        else:
            input_field.disable()
        if state.is_streaming:
            send_btn.disable()
        else:
            send_btn.enable()
        if state.is_parsing:
            start_btn.disable()
        else:
            start_btn.enable()
        start_btn.set_text("Restart Chat" if state.is_chatting else "Start Chat")

    def refresh_all() -> None:
        context_area.set_value(state.context)
        context_area.set_visibility(len(state.documents) > 0 or bool(state.context))
        document_list.refresh()
        transcript.refresh()
        refresh_controls()

    async def handle_upload(e: events.UploadEventArguments) -> None:
        name = e.file.name
        upload.reset()
        if not is_supported(name):
            ui.notify(UNSUPPORTED_TYPE_MESSAGE, type="warning")
            return
        if name in state.documents:
            ui.notify(str(DuplicateDocumentError(name)), type="warning")
            return

        state.error = None
        state.is_parsing = True
        refresh_all()
        try:
            document = await api.extract_document(name, await e.file.read(), e.file.content_type)
            state.documents.add(document.filename, document.content)
            state.sync_context()
        except (ChatClientError, DuplicateDocumentError) as exc:
            state.error = f"Failed to parse file: {exc}"
            ui.notify(state.error, type="negative")
        finally:
            state.is_parsing = False
            refresh_all()

    def delete_file(name: str) -> None:
        if state.documents.remove(name):
            state.sync_context()
        refresh_all()

    async def clear_context() -> None:
        state.documents.clear()
        state.context = ""
        state.messages.clear()
        state.error = None
        if state.session_id:
            await api.end_session(state.session_id)
            state.session_id = None
        refresh_all()

    async def summarize_context() -> None:
        if not state.context.strip():
            ui.notify("There is no context to summarize.", type="warning")
            return
        summarize_btn.disable()
        try:
            state.context = await api.summarize(state.context)
            ui.notify("Context replaced with its summary.", type="positive")
        except ChatClientError as exc:
            state.error = str(exc)
            ui.notify(state.error, type="negative")
        finally:
            summarize_btn.enable()
            refresh_all()

    async def start_chat() -> None:
        state.error = None
        if state.session_id:
            await api.end_session(state.session_id)
            state.session_id = None
        state.messages.clear()
        start_btn.disable()
        try:
            started = await api.start_session(state.context)
            state.session_id = started.session_id
            state.add_message(Role.MODEL, started.greeting)
        except ChatClientError as exc:
            state.error = str(exc)
            ui.notify(state.error, type="negative")
        finally:
            refresh_all()

    async def send_message() -> None:
        text = (input_field.value or "").strip()
        if not text or state.is_streaming or not state.session_id:
            return

        input_field.value = ""
        state.error = None
        state.is_streaming = True
        state.add_message(Role.USER, text)
        refresh_all()

        with live_container:
            with ui.row().classes("gap-1 p-4") as typing:
                for _ in range(3):
                    ui.element("div").classes("typing-dot")

        reply = state.add_message(Role.MODEL, "")
        reply_view: ui.markdown | None = None

        def on_text(accumulated: str) -> None:
            nonlocal reply_view
            reply.content = accumulated
            if reply_view is None:
                typing.delete()
                with live_container:
                    reply_view = render_message(reply)
            else:
                reply_view.set_content(accumulated)

        try:
            await api.send_message(state.session_id, text, on_text)
        except ChatClientError as exc:
            logger.warning(f"Chat request failed: {exc}")
            state.error = str(exc)
            state.add_message(Role.MODEL, f"Error: {exc}")
            ui.notify(state.error, type="negative")
        finally:
            state.discard_if_empty(reply)
            state.is_streaming = False
            live_container.clear()
            refresh_all()

    # === UI Layout ===
    with ui.row().classes("w-full h-screen no-wrap gap-0"):
        with ui.column().classes("context-panel w-1/4 min-w-[280px] h-full p-6 gap-4"):
            with ui.row().classes("items-center gap-3"):
                ui.icon("shield").classes("text-3xl text-indigo-400")
                ui.label("Context").classes("text-xl font-bold")
            ui.label("Upload documents to provide context. You can also start a general chat.").classes(
                "text-sm text-slate-400"
            )
            upload = (
                ui.upload(on_upload=handle_upload, auto_upload=True, multiple=True)
                .props(f'accept="{",".join(SUPPORTED_EXTENSIONS)}" flat bordered dark')
                .classes("w-full")
            )
            with ui.column().classes("w-full gap-2"):
                document_list()
            context_area = (
                ui.textarea(placeholder="Combined context from uploaded files...")
                .props("dark outlined input-class=text-sm")
                .classes("w-full flex-grow")
                .on_value_change(lambda e: setattr(state, "context", e.value or ""))
            )
            context_area.set_visibility(False)
            summarize_btn = ui.button("Summarize", on_click=summarize_context).props("outline color=indigo-3")
            start_btn = ui.button("Start Chat", on_click=start_chat).classes("w-full mt-auto").props(
                "color=indigo"
            )

        with ui.column().classes("flex-grow h-full gap-0"):
            with ui.row().classes("w-full bg-white p-4 border-b justify-center"):
                ui.label("ERM Risk Chatbot").classes("text-xl font-bold text-slate-800")
            with ui.scroll_area().classes("flex-grow w-full"):
                messages_container = ui.column().classes("w-full max-w-4xl mx-auto p-6 gap-4")
                with messages_container:
                    transcript()
                    live_container = ui.column().classes("w-full gap-4")
            with ui.row().classes("w-full bg-white p-4 border-t no-wrap items-center gap-3"):
                input_field = (
                    ui.input(placeholder="Ask a question about your documents...")
                    .props("outlined dense")
                    .classes("flex-grow")
                    .on("keydown.enter", send_message)
                )
                send_btn = ui.button(icon="send", on_click=send_message).props("round color=indigo")

    refresh_controls()


def main() -> None:
    ui.run(title="ERM Risk Chatbot", port=8080, reload=False)


if __name__ == "__main__":
    main()
