"""
Polyglot Tutor - Tkinter (card-based) front end

Flow:
1. Language card: pick the language to study.
2. Goal card: pick what to focus on.
3. Workspace card: sidebar with all eight tools, the active tool on the right.
   Tools keep their input and results while you switch between them.

Setup (from repo root):

    python -m venv .venv
    source .venv/bin/activate   # or .venv\\Scripts\\activate on Windows
    pip install -e .

Ensure .env contains:
    OPENAI_API_KEY=sk-...

Then run:
    python main.py
"""

import tkinter as tk
from tkinter import ttk
from typing import Callable, Dict, List, Optional

from polyglot_tutor.api import OpenAIModelService, RequestDispatcher, create_client
from polyglot_tutor.config import Settings, load_settings
from polyglot_tutor.controllers import (
    ConversationController,
    ConversationPhase,
    QuizController,
    QuizPhase,
    ToolController,
    ToolState,
)
from polyglot_tutor.logger import logger
from polyglot_tutor.models import SUPPORTED_LANGUAGES, Language, LearningGoal, WritingCorrectionResult
from polyglot_tutor.navigation import NavigationShell

BG = "#1e1e1e"
PANEL_BG = "#2d2d2d"
FIELD_BG = "#3d3d3d"
FG = "#e0e0e0"
MUTED = "#9a9a9a"
ACCENT = "#7bb3ff"
SUCCESS = "#69db7c"
DANGER = "#ff6b6b"


# ---------------------------------------------------------------------------
# Small widgets
# ---------------------------------------------------------------------------

class LoadingSpinner(ttk.Frame):
    """A simple animated loading spinner widget for Tkinter."""

    def __init__(self, parent, text: str = "Loading...") -> None:
        super().__init__(parent)

        self.text = text
        self.spinner_chars = ["⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏"]
        self.spinner_index = 0
        self.is_running = False
        self._after_id = None

        self.label = ttk.Label(self, text=f"{self.spinner_chars[0]} {text}",
                               font=("Helvetica", 13), foreground=ACCENT)
        self.label.pack(pady=8)

    def start(self) -> None:
        if self.is_running:
            return
        self.is_running = True
        self.grid()
        self._animate()

    def stop(self) -> None:
        self.is_running = False
        if self._after_id:
            self.after_cancel(self._after_id)
            self._after_id = None
        self.grid_remove()

    def _animate(self) -> None:
        if not self.is_running:
            return
        char = self.spinner_chars[self.spinner_index]
        self.label.configure(text=f"{char} {self.text}")
        self.spinner_index = (self.spinner_index + 1) % len(self.spinner_chars)
        self._after_id = self.after(100, self._animate)


def make_text_area(parent, height: int = 12) -> tuple:
    """A dark, scrollable, word-wrapped Text widget. Returns (frame, text)."""
    frame = ttk.Frame(parent)
    frame.columnconfigure(0, weight=1)
    frame.rowconfigure(0, weight=1)
    text = tk.Text(frame, height=height, wrap="word", background=PANEL_BG, foreground=FG,
                   insertbackground=FG, relief="flat", padx=10, pady=10, font=("Helvetica", 13))
    scrollbar = ttk.Scrollbar(frame, orient="vertical", command=text.yview)
    text.configure(yscrollcommand=scrollbar.set)
    text.grid(row=0, column=0, sticky="nsew")
    scrollbar.grid(row=0, column=1, sticky="ns")
    return frame, text


def set_readonly_text(text: tk.Text, content: str) -> None:
    text.configure(state="normal")
    text.delete("1.0", "end")
    text.insert("1.0", content)
    text.configure(state="disabled")


def format_correction(result: WritingCorrectionResult) -> str:
    rating = result.rating
    lines = [
        "Corrected Version",
        result.corrected_text,
        "",
        f"GRAMMAR {rating.grammar:g}/10    CLARITY {rating.clarity:g}/10    TONE {rating.tone:g}/10",
        "",
        "Explanation",
        result.explanation,
        "",
        "Tips",
        *[f"  • {tip}" for tip in result.tips],
    ]
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Tool panels
# ---------------------------------------------------------------------------

class ToolPanel(ttk.Frame):
    """Generic panel: inputs built from controller.fields, submit, markdown result."""

    result_placeholder = "Results will appear here."

    def __init__(self, parent, controller: ToolController) -> None:
        super().__init__(parent)
        self.controller = controller
        self.columnconfigure(0, weight=1)

        ttk.Label(self, text=controller.title, font=("Helvetica", 22, "bold"),
                  foreground="#ffffff").grid(row=0, column=0, sticky="w", pady=(10, 2))
        ttk.Label(self, text=controller.description, foreground=MUTED,
                  font=("Helvetica", 13)).grid(row=1, column=0, sticky="w", pady=(0, 12))

        self.form = ttk.Frame(self)
        self.form.grid(row=2, column=0, sticky="ew")
        self.form.columnconfigure(1, weight=1)
        self._build_inputs()

        self.submit_button = ttk.Button(self, text=controller.submit_label, command=self._on_submit)
        self.submit_button.grid(row=3, column=0, sticky="e", pady=(8, 4))

        self.spinner = LoadingSpinner(self, text="Asking your tutor...")
        self.spinner.grid(row=4, column=0)
        self.spinner.grid_remove()

        self.error_label = ttk.Label(self, text="", foreground=DANGER, wraplength=600)
        self.error_label.grid(row=5, column=0, sticky="w")

        self._build_result_area()

        self._unsubscribe = controller.subscribe(lambda _c: self.refresh())
        self.bind("<Destroy>", self._on_destroy)
        self.refresh()

    def _build_inputs(self) -> None:
        for row, field in enumerate(self.controller.fields):
            ttk.Label(self.form, text=field.label, font=("Helvetica", 13)).grid(
                row=row, column=0, sticky="nw", padx=(0, 10), pady=4
            )
            current = self.controller.inputs.get(field.name, "")

            if field.choices:
                var = tk.StringVar(value=current)
                widget = ttk.Combobox(self.form, textvariable=var, values=field.choices,
                                      state="readonly", width=20)
                var.trace_add("write", lambda *_a, n=field.name, v=var: self.controller.set_input(n, v.get()))
                widget.grid(row=row, column=1, sticky="w", pady=4)
            elif field.multiline:
                frame, text = make_text_area(self.form, height=6)
                text.insert("1.0", current)
                text.bind("<KeyRelease>",
                          lambda _e, n=field.name, t=text: self.controller.set_input(n, t.get("1.0", "end-1c")))
                frame.grid(row=row, column=1, sticky="ew", pady=4)
            else:
                var = tk.StringVar(value=current)
                widget = ttk.Entry(self.form, textvariable=var, font=("Helvetica", 13))
                var.trace_add("write", lambda *_a, n=field.name, v=var: self.controller.set_input(n, v.get()))
                widget.bind("<Return>", lambda _e: self._on_submit())
                widget.grid(row=row, column=1, sticky="ew", pady=4)
                if field.placeholder and not current:
                    ttk.Label(self.form, text=field.placeholder, foreground=MUTED,
                              font=("Helvetica", 11)).grid(row=row, column=2, sticky="w", padx=(8, 0))

    def _build_result_area(self) -> None:
        frame, self.result_text = make_text_area(self, height=18)
        frame.grid(row=6, column=0, sticky="nsew", pady=(8, 10))
        self.rowconfigure(6, weight=1)

    def _on_submit(self) -> None:
        self.controller.submit()

    def _on_destroy(self, event: tk.Event) -> None:
        if event.widget == self:
            self._unsubscribe()

    def refresh(self) -> None:
        controller = self.controller
        self.submit_button.configure(state="normal" if controller.can_submit else "disabled")

        if controller.loading:
            self.spinner.start()
        else:
            self.spinner.stop()

        self.error_label.configure(text=controller.error if controller.state is ToolState.ERROR else "")
        self.render_result()

    def render_result(self) -> None:
        if self.controller.state is ToolState.RESULT:
            set_readonly_text(self.result_text, self.controller.result)
        elif self.controller.result is None:
            set_readonly_text(self.result_text, self.result_placeholder)


class WritingPanel(ToolPanel):
    result_placeholder = "Feedback will appear here."

    def render_result(self) -> None:
        if self.controller.state is ToolState.RESULT:
            set_readonly_text(self.result_text, format_correction(self.controller.result))
        else:
            set_readonly_text(self.result_text, self.result_placeholder)


class QuizPanel(ToolPanel):
    controller: QuizController

    def _build_result_area(self) -> None:
        self.quiz_frame = ttk.Frame(self)
        self.quiz_frame.grid(row=6, column=0, sticky="nsew", pady=(8, 10))
        self.quiz_frame.columnconfigure(0, weight=1)
        self._shown_quiz = None
        self._answer_vars: List[tk.IntVar] = []
        self._feedback_labels: List[ttk.Label] = []
        self._radio_buttons: List[ttk.Radiobutton] = []

        self.grade_button = ttk.Button(self, text="Submit Answers", command=self._on_grade)
        self.score_label = ttk.Label(self, text="", font=("Helvetica", 15, "bold"), foreground=ACCENT)
        self.again_button = ttk.Button(self, text="Take another quiz →", command=self.controller.new_quiz)

    def render_result(self) -> None:
        quiz = self.controller.quiz
        if quiz is not self._shown_quiz:
            self._rebuild_questions()

        phase = self.controller.phase
        self.grade_button.grid_remove()
        self.score_label.grid_remove()
        self.again_button.grid_remove()

        if phase is QuizPhase.ANSWERING:
            self.grade_button.grid(row=7, column=0, sticky="e")
            self.grade_button.configure(state="normal" if self.controller.can_grade else "disabled")
        elif phase is QuizPhase.GRADED:
            self.score_label.configure(text=f"Score: {self.controller.score}/{len(quiz.questions)}")
            self.score_label.grid(row=7, column=0)
            self.again_button.grid(row=8, column=0, pady=(6, 10))
            for button in self._radio_buttons:
                button.configure(state="disabled")
            for index, label in enumerate(self._feedback_labels):
                question = quiz.questions[index]
                if self.controller.is_correct(index):
                    label.configure(text=f"✓ Correct. {question.explanation}", foreground=SUCCESS)
                else:
                    answer = question.options[question.correct_answer_index]
                    label.configure(text=f"✗ Answer: {answer}. {question.explanation}", foreground=DANGER)

    def _rebuild_questions(self) -> None:
        for child in self.quiz_frame.winfo_children():
            child.destroy()
        self._answer_vars = []
        self._feedback_labels = []
        self._radio_buttons = []
        self._shown_quiz = self.controller.quiz
        if self._shown_quiz is None:
            return

        for q_index, question in enumerate(self._shown_quiz.questions):
            box = ttk.Frame(self.quiz_frame)
            box.grid(row=q_index, column=0, sticky="ew", pady=8)
            ttk.Label(box, text=f"{q_index + 1}. {question.question}", font=("Helvetica", 14, "bold"),
                      wraplength=620, foreground="#ffffff").pack(anchor="w")

            var = tk.IntVar(value=-1)
            self._answer_vars.append(var)
            for o_index, option in enumerate(question.options):
                button = ttk.Radiobutton(
                    box, text=f"{chr(65 + o_index)}. {option}", variable=var, value=o_index,
                    command=lambda q=q_index, o=o_index: self.controller.select_option(q, o),
                )
                button.pack(anchor="w", padx=16)
                self._radio_buttons.append(button)

            feedback = ttk.Label(box, text="", wraplength=620, font=("Helvetica", 12))
            feedback.pack(anchor="w", padx=16, pady=(4, 0))
            self._feedback_labels.append(feedback)

    def _on_grade(self) -> None:
        self.controller.grade()


class ConversationPanel(ttk.Frame):
    def __init__(self, parent, controller: ConversationController) -> None:
        super().__init__(parent)
        self.controller = controller
        self.columnconfigure(0, weight=1)
        self.rowconfigure(0, weight=1)
        self._shown_phase: Optional[ConversationPhase] = None
        self._view: Optional[ttk.Frame] = None

        self._unsubscribe = controller.subscribe(lambda _c: self.refresh())
        self.bind("<Destroy>", self._on_destroy)
        self.refresh()

    def _on_destroy(self, event: tk.Event) -> None:
        if event.widget == self:
            self._unsubscribe()

    def refresh(self) -> None:
        phase = self.controller.phase
        if phase is not self._shown_phase:
            if self._view is not None:
                self._view.destroy()
            self._view = self._build_setup() if phase is ConversationPhase.NOT_STARTED else self._build_chat()
            self._view.grid(row=0, column=0, sticky="nsew")
            self._shown_phase = phase

        if phase is ConversationPhase.NOT_STARTED:
            self.start_button.configure(state="normal" if self.controller.can_start else "disabled")
        else:
            lines = []
            for message in self.controller.messages:
                speaker = "You" if message.role == "user" else "Tutor"
                lines.append(f"{speaker}: {message.text}\n")
            if self.controller.loading:
                lines.append("Tutor is typing...")
            set_readonly_text(self.transcript, "\n".join(lines))
            self.transcript.see("end")
            self._update_send_state()

    def _build_setup(self) -> ttk.Frame:
        view = ttk.Frame(self)
        ttk.Label(view, text=self.controller.title, font=("Helvetica", 22, "bold"),
                  foreground="#ffffff").pack(anchor="w", pady=(10, 2))
        ttk.Label(view, text=self.controller.description, foreground=MUTED).pack(anchor="w", pady=(0, 12))

        ttk.Label(view, text="Topic").pack(anchor="w")
        self.topic_var = tk.StringVar(value=self.controller.topic)
        self.topic_var.trace_add("write", lambda *_a: self.controller.set_topic(self.topic_var.get()))
        entry = ttk.Entry(view, textvariable=self.topic_var, font=("Helvetica", 13), width=40)
        entry.pack(anchor="w", pady=4)
        entry.bind("<Return>", lambda _e: self.controller.start())

        chips = ttk.Frame(view)
        chips.pack(anchor="w", pady=6)
        for topic in self.controller.suggested_topics:
            ttk.Button(chips, text=topic, command=lambda t=topic: self.topic_var.set(t)).pack(side="left", padx=(0, 6))

        self.start_button = ttk.Button(view, text="Start Chat", command=self.controller.start)
        self.start_button.pack(anchor="w", pady=(12, 0))
        return view

    def _build_chat(self) -> ttk.Frame:
        view = ttk.Frame(self)
        view.columnconfigure(0, weight=1)
        view.rowconfigure(1, weight=1)

        header = ttk.Frame(view)
        header.grid(row=0, column=0, columnspan=2, sticky="ew", pady=(10, 6))
        session = self.controller.session
        ttk.Label(header, text=f"Conversation: {session.topic}", font=("Helvetica", 18, "bold"),
                  foreground="#ffffff").pack(side="left")
        ttk.Button(header, text="End chat", command=self.controller.end).pack(side="right")

        frame, self.transcript = make_text_area(view, height=20)
        frame.grid(row=1, column=0, columnspan=2, sticky="nsew")

        self.message_var = tk.StringVar()
        self.message_var.trace_add("write", lambda *_a: self._update_send_state())
        entry = ttk.Entry(view, textvariable=self.message_var, font=("Helvetica", 13))
        entry.grid(row=2, column=0, sticky="ew", pady=8)
        entry.bind("<Return>", lambda _e: self._on_send())
        entry.focus_set()

        self.send_button = ttk.Button(view, text="Send", command=self._on_send)
        self.send_button.grid(row=2, column=1, padx=(8, 0))
        return view

    def _update_send_state(self) -> None:
        can_send = self.controller.can_send(self.message_var.get())
        self.send_button.configure(state="normal" if can_send else "disabled")

    def _on_send(self) -> None:
        text = self.message_var.get()
        if self.controller.send(text):
            self.message_var.set("")


PANEL_TYPES: Dict[LearningGoal, Callable] = {
    LearningGoal.WRITING: WritingPanel,
    LearningGoal.QUIZ: QuizPanel,
    LearningGoal.CONVERSATION: ConversationPanel,
}


# ---------------------------------------------------------------------------
# Main application
# ---------------------------------------------------------------------------

class PolyglotTutorApp(tk.Tk):
    def __init__(self, settings: Settings, dispatcher: Optional[RequestDispatcher]) -> None:
        super().__init__()
        logger.ui("Initializing PolyglotTutorApp window...")

        self.title("Polyglot Tutor")
        window_width, window_height = 950, 750
        center_x = int(self.winfo_screenwidth() / 2 - window_width / 2)
        center_y = int(self.winfo_screenheight() / 2 - window_height / 2)
        self.geometry(f"{window_width}x{window_height}+{center_x}+{center_y}")
        self.minsize(600, 450)
        self.configure(bg=BG)

        style = ttk.Style()
        style.theme_use("clam")
        style.configure("TFrame", background=BG)
        style.configure("TLabel", background=BG, foreground=FG, font=("Helvetica", 14))
        style.configure("TButton", background=PANEL_BG, foreground=FG, font=("Helvetica", 13))
        style.map("TButton", background=[("active", FIELD_BG)])
        style.configure("Selected.TButton", background="#4a6fa5", foreground="#ffffff")
        style.configure("TRadiobutton", background=BG, foreground=FG, font=("Helvetica", 13))
        style.configure("TCombobox", fieldbackground=FIELD_BG, background=PANEL_BG, foreground="#ffffff")
        style.configure("TEntry", fieldbackground=FIELD_BG, foreground="#ffffff")

        self.settings = settings
        self.shell = NavigationShell(dispatcher, deliver=self.deliver)

        container = ttk.Frame(self)
        container.pack(fill="both", expand=True)
        container.rowconfigure(0, weight=1)
        container.columnconfigure(0, weight=1)

        self.cards: Dict[str, ttk.Frame] = {}
        for card_class in (LanguageCard, GoalCard, WorkspaceCard):
            card = card_class(parent=container, app=self)
            self.cards[card_class.__name__] = card
            card.grid(row=0, column=0, sticky="nsew")

        logger.ui("Application initialized successfully")
        self.show_card("LanguageCard")

    def deliver(self, callback: Callable[[], None]) -> None:
        """Run callback on the Tk thread; background workers hand results back through here."""
        self.after(0, callback)

    def show_card(self, name: str) -> None:
        logger.ui_transition("current_card", name)
        self.cards[name].tkraise()

    def choose_language(self, language: Language) -> None:
        self.cards["WorkspaceCard"].clear()
        self.shell.select_language(language)
        self.cards["GoalCard"].refresh()
        self.show_card("GoalCard")

    def choose_goal(self, goal: LearningGoal) -> None:
        controller = self.shell.select_goal(goal)
        self.cards["WorkspaceCard"].show_tool(goal, controller)
        self.show_card("WorkspaceCard")

    def change_language(self) -> None:
        self.cards["WorkspaceCard"].clear()
        self.shell.reset()
        self.show_card("LanguageCard")


class LanguageCard(ttk.Frame):
    def __init__(self, parent, app: PolyglotTutorApp) -> None:
        super().__init__(parent)
        self.app = app
        self.columnconfigure(0, weight=1)

        ttk.Label(self, text="Welcome to Polyglot Tutor", font=("Helvetica", 28, "bold"),
                  foreground="#ffffff").grid(row=0, column=0, pady=(50, 10))
        ttk.Label(
            self,
            text="Your personal AI tutor. Master a new language through conversation,\n"
                 "instant feedback, and personalized lessons.",
            justify="center", foreground="#d0d0d0",
        ).grid(row=1, column=0, pady=(0, 30))

        ttk.Label(self, text="SELECT A LANGUAGE TO BEGIN", foreground=MUTED,
                  font=("Helvetica", 12, "bold")).grid(row=2, column=0, pady=(0, 12))

        grid = ttk.Frame(self)
        grid.grid(row=3, column=0)
        state = "normal" if app.settings.api_available else "disabled"
        for index, language in enumerate(SUPPORTED_LANGUAGES):
            ttk.Button(
                grid, text=f"{language.flag}  {language.name}", width=22, state=state,
                command=lambda lang=language: app.choose_language(lang),
            ).grid(row=index // 2, column=index % 2, padx=8, pady=6)

        if not app.settings.api_available:
            ttk.Label(
                self,
                text="⚠ OpenAI API key not found!\n\nPlease add your API key to a .env file:\n"
                     "OPENAI_API_KEY=sk-...\n\nThe application cannot function without a valid API key.",
                foreground=DANGER, justify="center", wraplength=500,
            ).grid(row=4, column=0, pady=(24, 10))


class GoalCard(ttk.Frame):
    def __init__(self, parent, app: PolyglotTutorApp) -> None:
        super().__init__(parent)
        self.app = app
        self.columnconfigure(0, weight=1)

        ttk.Button(self, text="← Back to languages", command=app.change_language).grid(
            row=0, column=0, sticky="w", padx=20, pady=20
        )
        self.heading = ttk.Label(self, text="", font=("Helvetica", 22, "bold"), foreground="#ffffff")
        self.heading.grid(row=1, column=0, pady=(10, 4))
        ttk.Label(self, text="You can always change this later from the sidebar.",
                  foreground=MUTED).grid(row=2, column=0, pady=(0, 24))

        grid = ttk.Frame(self)
        grid.grid(row=3, column=0)
        for index, goal in enumerate(LearningGoal):
            ttk.Button(grid, text=goal.value, width=26,
                       command=lambda g=goal: app.choose_goal(g)).grid(
                row=index // 2, column=index % 2, padx=8, pady=8
            )

    def refresh(self) -> None:
        language = self.app.shell.language
        name = language.name if language else ""
        self.heading.configure(text=f"What would you like to focus on in {name}?")


class WorkspaceCard(ttk.Frame):
    def __init__(self, parent, app: PolyglotTutorApp) -> None:
        super().__init__(parent)
        self.app = app
        self.columnconfigure(1, weight=1)
        self.rowconfigure(0, weight=1)

        sidebar = ttk.Frame(self, padding=12)
        sidebar.grid(row=0, column=0, sticky="ns")
        self.language_label = ttk.Label(sidebar, text="", font=("Helvetica", 15, "bold"))
        self.language_label.pack(anchor="w")
        ttk.Button(sidebar, text="Change", command=app.change_language).pack(anchor="w", pady=(4, 16))

        self.nav_buttons: Dict[LearningGoal, ttk.Button] = {}
        for goal in LearningGoal:
            button = ttk.Button(sidebar, text=goal.short_label, width=16,
                                command=lambda g=goal: app.choose_goal(g))
            button.pack(anchor="w", pady=3)
            self.nav_buttons[goal] = button

        self.body = ttk.Frame(self, padding=(8, 0, 16, 0))
        self.body.grid(row=0, column=1, sticky="nsew")
        self.body.columnconfigure(0, weight=1)
        self.body.rowconfigure(0, weight=1)
        self.panels: Dict[LearningGoal, ttk.Frame] = {}

    def show_tool(self, goal: LearningGoal, controller) -> None:
        language = self.app.shell.language
        self.language_label.configure(text=f"{language.flag} {language.name}" if language else "")

        panel = self.panels.get(goal)
        if panel is None:
            panel_class = PANEL_TYPES.get(goal, ToolPanel)
            panel = panel_class(self.body, controller)
            panel.grid(row=0, column=0, sticky="nsew")
            self.panels[goal] = panel
        panel.tkraise()

        for nav_goal, button in self.nav_buttons.items():
            button.configure(style="Selected.TButton" if nav_goal is goal else "TButton")

    def clear(self) -> None:
        for panel in self.panels.values():
            panel.destroy()
        self.panels = {}


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main() -> None:
    logger.banner("Polyglot Tutor - Starting Application")
    settings = load_settings()

    dispatcher: Optional[RequestDispatcher] = None
    if settings.api_available:
        service = OpenAIModelService(create_client(settings))
        dispatcher = RequestDispatcher(service, settings.model)
    else:
        logger.warning("No API key: language selection is disabled until one is configured")

    app = PolyglotTutorApp(settings, dispatcher)
    logger.success("Application window created, entering main loop")
    app.mainloop()
    logger.separator("Application Closed")


if __name__ == "__main__":
    main()
