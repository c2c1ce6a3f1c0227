import streamlit as st
import requests
import os

# Configuration
BACKEND_URL = os.getenv("BACKEND_URL", "http://localhost:8000")
QUESTION_TYPES = ["mcq", "true_false", "short_answer"]
st.set_page_config(page_title="Notes Quiz", layout="wide")

# Initialize session state
def init_session():
    session_defaults = {
        "quiz_data": None,
        "quiz_result": None,
        "failed_raw": None,
    }
    for key, value in session_defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value

init_session()

def error_message(response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    return payload.get("error", f"HTTP {response.status_code}")

# UI Components
st.title("📝 Study Notes → Quiz")
st.subheader("Upload your notes and test yourself")

# Sidebar for notes upload and quiz options
with st.sidebar:
    st.header("Upload Notes")
    uploaded_files = st.file_uploader(
        "PDF, image or text files",
        type=["pdf", "txt", "md", "png", "jpg", "jpeg"],
        accept_multiple_files=True,
    )
    count = st.number_input("Number of questions", min_value=1, max_value=100, value=8)
    selected_types = [t for t in QUESTION_TYPES if st.checkbox(t.replace("_", " / "), value=True)]
    difficulty = st.selectbox("Difficulty", ["easy", "medium", "hard"], index=1)

    if st.button("Generate Quiz"):
        if not uploaded_files:
            st.warning("Upload at least one file (.pdf / .txt / image).")
        elif not selected_types:
            st.warning("Select at least one question type.")
        else:
            with st.spinner("Creating quiz questions..."):
                try:
                    response = requests.post(
                        f"{BACKEND_URL}/generate-quiz/",
                        files=[
                            ("files", (f.name, f.getvalue(), f.type or "application/octet-stream"))
                            for f in uploaded_files
                        ],
                        data={"count": int(count), "types": selected_types, "difficulty": difficulty},
                        timeout=300,
                    )
                    st.session_state.quiz_result = None
                    if response.status_code == 200:
                        st.session_state.quiz_data = response.json()
                        st.session_state.failed_raw = None
                        st.success("Quiz generated!")
                    else:
                        st.session_state.quiz_data = None
                        try:
                            st.session_state.failed_raw = response.json().get("raw")
                        except ValueError:
                            st.session_state.failed_raw = None
                        st.error(f"Failed to generate quiz: {error_message(response)}")
                except requests.RequestException as e:
                    st.error(f"Connection error: {str(e)}")

if st.session_state.failed_raw:
    with st.expander("Model output"):
        st.code(st.session_state.failed_raw)

quiz = st.session_state.quiz_data
if quiz:
    meta = quiz["meta"]
    st.header("Quiz")
    st.caption(f"{meta['question_count']} items · {', '.join(meta['types'])}")
    if meta.get("source_summary"):
        st.markdown(f"_{meta['source_summary']}_")

    with st.form(key="quiz_form"):
        answers = {}
        for q in quiz["questions"]:
            st.markdown(f"**Q{q['id']}.** {q['prompt']}")
            key = f"answer_{q['id']}"
            if q["type"] == "mcq" and q.get("choices"):
                choices = q["choices"]
                answers[q["id"]] = st.radio(
                    "Choose one",
                    options=list(range(len(choices))),
                    format_func=lambda i, choices=choices: choices[i],
                    index=None,
                    key=key,
                    label_visibility="collapsed",
                )
            elif q["type"] == "true_false":
                answers[q["id"]] = st.radio(
                    "True or false",
                    options=["true", "false"],
                    format_func=str.capitalize,
                    index=None,
                    key=key,
                    label_visibility="collapsed",
                )
            else:
                answers[q["id"]] = st.text_input("Your answer", key=key, label_visibility="collapsed")

        submitted = st.form_submit_button("Submit")

    if submitted:
        with st.spinner("Grading..."):
            try:
                response = requests.post(
                    f"{BACKEND_URL}/evaluate-quiz/",
                    json={"quiz": quiz, "answers": answers},
                    timeout=60,
                )
                if response.status_code == 200:
                    st.session_state.quiz_result = response.json()
                else:
                    st.error(f"Grading failed: {error_message(response)}")
            except requests.RequestException as e:
                st.error(f"Connection error: {str(e)}")

    if st.session_state.quiz_result:
        result = st.session_state.quiz_result
        st.success(f"## Score: {result['score']}")

        with st.expander("Show answers & explanations"):
            questions = {q["id"]: q for q in quiz["questions"]}
            for res in result["detail"]:
                status = "✅" if res["is_correct"] else "❌"
                q = questions.get(res["question_id"], {})
                correct = res["correct_answer"]
                if q.get("type") == "mcq" and q.get("choices") and 0 <= correct < len(q["choices"]):
                    correct = q["choices"][correct]
                elif isinstance(correct, list):
                    correct = " / ".join(correct)
                st.markdown(f"{status} **Q{res['question_id']}** ({q.get('type', '')}): {res['prompt']}")
                st.markdown(f"- Correct answer: **{correct}**")
                st.markdown(f"- _{res.get('explanation') or '—'}_")
                st.divider()
else:
    st.info("📘 Upload your notes and generate a quiz to get started")
