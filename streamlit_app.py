# streamlit_app.py
import asyncio

import streamlit as st

from studymaster.api.client import BackendClient
from studymaster.auth.state import AuthState
from studymaster.core.logging import configure_logging
from studymaster.views.conversation import ConversationView, PastedItem
from studymaster.views.directory import SessionDirectory
from studymaster.views.notifications import Notifier
from studymaster.views.router import RouterView, SessionRouter

configure_logging()

IMAGE_TYPES = ["png", "jpg", "jpeg", "gif", "webp"]

st.set_page_config(page_title="StudyMaster AI", layout="wide")


# --- Session state wiring ---

if "router" not in st.session_state:
    client = BackendClient()
    notifier = Notifier()
    auth = AuthState(client)
    st.session_state.client = client
    st.session_state.notifier = notifier
    st.session_state.auth = auth
    st.session_state.router = SessionRouter(auth, notifier)
    st.session_state.directory = None
    st.session_state.conversation = None
    st.session_state.uploader_key = 0

router: SessionRouter = st.session_state.router
notifier: Notifier = st.session_state.notifier

if not router.mounted:
    with st.spinner("Checking your session..."):
        asyncio.run(router.mount())


def show_notifications():
    for note in notifier.drain():
        text = f"**{note.title}**" + (f": {note.description}" if note.description else "")
        st.toast(text, icon="⚠️" if note.is_error else "✅")


def sign_out():
    asyncio.run(router.sign_out())
    router.unmount()
    for key in list(st.session_state.keys()):
        del st.session_state[key]


# --- Auth entry ---

def render_auth():
    st.title("StudyMaster AI")
    st.caption("Sign in to continue to your study sessions")
    sign_in_tab, sign_up_tab = st.tabs(["Sign In", "Sign Up"])
    with sign_in_tab:
        with st.form("sign_in"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            if st.form_submit_button("Sign In"):
                with st.spinner("Signing in..."):
                    ok = asyncio.run(router.sign_in(email, password))
                if ok:
                    st.rerun()
    with sign_up_tab:
        with st.form("sign_up"):
            email = st.text_input("Email", key="sign_up_email")
            password = st.text_input("Password", type="password", key="sign_up_password")
            if st.form_submit_button("Create account"):
                with st.spinner("Creating account..."):
                    ok = asyncio.run(router.sign_up(email, password))
                if ok:
                    st.rerun()


# --- Session Directory ---

def get_directory() -> SessionDirectory:
    if st.session_state.directory is None:
        directory = SessionDirectory(
            st.session_state.client, st.session_state.auth, router.select_session, notifier
        )
        with st.spinner("Loading your study sessions..."):
            asyncio.run(directory.list_sessions())
        st.session_state.directory = directory
    return st.session_state.directory


@st.dialog("Create Study Session")
def create_session_dialog(directory: SessionDirectory):
    st.caption("Set up a new AI-powered study session with custom instructions.")
    directory.session_name = st.text_input(
        "Session Name", value=directory.session_name, placeholder="e.g., Mathematics Exam Prep"
    )
    directory.system_prompt = st.text_area(
        "AI Instructions", value=directory.system_prompt, height=120,
        placeholder="Customize how the AI should help you study...",
    )
    if st.button("Create Session", disabled=directory.creating, use_container_width=True):
        with st.spinner("Creating..."):
            created = asyncio.run(directory.create_session())
        if created:
            st.rerun()
        show_notifications()


def render_directory():
    directory = get_directory()

    header, actions = st.columns([0.8, 0.2])
    with header:
        st.title("StudyMaster AI")
        st.caption("Your intelligent study sessions")
    with actions:
        if st.button("Sign Out"):
            sign_out()
            st.rerun()

    if st.button("➕ Create New Session"):
        directory.open_dialog()
        create_session_dialog(directory)

    if directory.is_empty:
        st.info(
            "**No study sessions yet**\n\n"
            "Create your first session to start studying with AI assistance"
        )
        return

    columns = st.columns(3)
    for index, session in enumerate(directory.sessions):
        with columns[index % 3]:
            with st.container(border=True):
                st.subheader(f"📘 {session.name}")
                st.caption(session.updated_at.strftime("%Y-%m-%d"))
                st.write(directory.preview(session))
                if st.button("Open", key=f"open_{session.id}", use_container_width=True):
                    directory.select(session.id)
                    directory.close_dialog()
                    st.rerun()


# --- Conversation View ---

def go_back():
    router.go_back()
    st.session_state.conversation = None
    # Re-list on return so the directory picks up the new recency order
    st.session_state.directory = None


def get_conversation() -> ConversationView:
    view = st.session_state.conversation
    if view is None or view.session_id != router.selected_session_id:
        view = ConversationView(
            router.selected_session_id,
            st.session_state.client,
            st.session_state.auth,
            on_back=go_back,
            notifier=notifier,
        )
        with st.spinner("Loading chat history..."):
            asyncio.run(view.open())
        st.session_state.conversation = view
    return view


def render_conversation():
    view = get_conversation()

    back, title = st.columns([0.1, 0.9])
    with back:
        if st.button("←", help="Back to sessions"):
            view.go_back()
            st.rerun()
    with title:
        st.subheader(view.session_name or "Study session")
        st.caption("AI Study Assistant")

    for message, ai_text, badge in view.transcript():
        with st.chat_message("user"):
            st.markdown(message.content)
            if badge:
                st.caption(badge)
        with st.chat_message("assistant"):
            st.text(ai_text)

    st.divider()

    with st.form("compose", clear_on_submit=False):
        text = st.text_input(
            "Message", value=view.current_message,
            placeholder="Type your question...", label_visibility="collapsed",
        )
        if st.form_submit_button("Send", disabled=view.busy):
            view.current_message = text
            with st.spinner("AI is thinking..."):
                sent = asyncio.run(view.submit_current())
            if sent:
                st.rerun()

    voice_col, image_col = st.columns(2)
    with voice_col:
        label = "⏹ Stop recording" if view.recording else "🎙️ Record voice"
        clip = st.audio_input("Speak now, then stop") if view.recording else None
        if st.button(label, disabled=view.busy):
            if clip is not None:
                view.recorder.feed(clip.getvalue())
            with st.spinner("Transcribing..." if view.recording else "Starting microphone..."):
                asyncio.run(view.toggle_recording())
            st.rerun()

    with image_col:
        files = st.file_uploader(
            "Upload or drop images", type=IMAGE_TYPES, accept_multiple_files=True,
            key=f"images_{st.session_state.uploader_key}",
        )
        if files and st.button("Send images", disabled=view.busy):
            items = [PastedItem(mime_type=f.type or "image/png", data=f.getvalue()) for f in files]
            with st.spinner("AI is thinking..."):
                asyncio.run(view.paste_images(items))
            st.session_state.uploader_key += 1
            st.rerun()

    st.caption("Type, speak, or upload images for AI assistance")


# --- Router ---

view = router.current_view
if view is RouterView.LOADING:
    st.caption("Loading...")
elif view is RouterView.AUTH:
    render_auth()
elif view is RouterView.DIRECTORY:
    render_directory()
else:
    render_conversation()

show_notifications()
