import os
import httpx
import streamlit as st

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000")
NEW_CONVERSATION = "New conversation"


def change_thread():
    """Follow the conversation picked in the sidebar."""
    st.session_state.current_thread = st.session_state.thread_select


def send_message(client: httpx.Client, text: str, thread_id: str | None) -> dict:
    """Post one chat turn; returns the response ``data`` or raises with the API's reason."""
    payload = {"message": text, "userId": "streamlit"}
    if thread_id:
        payload["threadId"] = thread_id
    response = client.post("/api/v1/chat", json=payload)
    body = response.json()
    if not body.get("success"):
        raise RuntimeError(body.get("error", f"HTTP {response.status_code}"))
    return body["data"]


if "history" not in st.session_state:
    st.session_state.current_thread = NEW_CONVERSATION
    st.session_state.history = {NEW_CONVERSATION: []}

st.title("Assistant Chat")

# Keep the selector on the active thread; widget state may only change before it renders.
if st.session_state.get("thread_select") != st.session_state.current_thread:
    st.session_state.thread_select = st.session_state.current_thread

with st.sidebar:
    st.selectbox(
        "Select Conversation",
        options=list(st.session_state.history.keys()),
        key="thread_select",
        on_change=change_thread,
    )
    if st.button("Start New Conversation"):
        st.session_state.history.setdefault(NEW_CONVERSATION, [])
        st.session_state.current_thread = NEW_CONVERSATION
        st.rerun()

current = st.session_state.current_thread
st.caption(current)
user_input = st.chat_input()

for message in st.session_state.history[current]:
    with st.chat_message(message["role"]):
        st.markdown(message["content"])

with httpx.Client(base_url=API_BASE_URL, timeout=60.0) as client:
    if user_input:
        with st.chat_message("user"):
            st.markdown(user_input)

        with st.chat_message("assistant"):
            placeholder = st.empty()
            placeholder.markdown("_thinking..._")

        thread_id = None if current == NEW_CONVERSATION else current
        try:
            data = send_message(client, user_input, thread_id)
        except (httpx.HTTPError, RuntimeError) as exc:
            placeholder.error(f"Request failed: {exc}")
            st.stop()

        # The backend assigns the thread id on the first turn.
        if thread_id is None:
            thread_id = data["threadId"]
            st.session_state.history[thread_id] = st.session_state.history.pop(NEW_CONVERSATION)
            st.session_state.current_thread = thread_id

        st.session_state.history[thread_id].extend(
            [
                {"role": "user", "content": user_input},
                {"role": "assistant", "content": data["response"]},
            ]
        )
        placeholder.markdown(data["response"])
        if current == NEW_CONVERSATION:
            st.rerun()
