import asyncio
import threading
import tkinter as tk
from tkinter import scrolledtext

from reality_check.api.service import end_session, get_session
from reality_check.domain.models import ConversationSnapshot
from reality_check.gui.render import (
    APP_TITLE,
    INPUT_PLACEHOLDER,
    controls_state,
    error_banner,
    transcript_blocks,
)


class LoopThread:
    """在后台线程上运行 asyncio 事件循环，会话只在该线程上被修改。"""

    def __init__(self):
        self.loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run, daemon=True)

    def _run(self):
        asyncio.set_event_loop(self.loop)
        self.loop.run_forever()

    def start(self):
        self._thread.start()

    def call(self, fn, *args):
        self.loop.call_soon_threadsafe(fn, *args)

    def stop(self):
        self.loop.call_soon_threadsafe(self.loop.stop)
        self._thread.join(timeout=2)


class App:
    def __init__(self, root):
        self.root = root
        self.root.title(APP_TITLE)
        self.loop_thread = LoopThread()
        self.store = get_session()
        self.snapshot = self.store.snapshot()
        self.dismissed_error = None
        header = tk.Frame(root, bg="#1d4ed8")
        header.pack(fill=tk.X)
        tk.Label(header, text=APP_TITLE, fg="white", bg="#1d4ed8", font=("TkDefaultFont", 14, "bold")).pack(
            side=tk.LEFT, padx=8, pady=6
        )
        tk.Button(header, text="Clear", command=self.on_clear).pack(side=tk.RIGHT, padx=8)
        footer = tk.Frame(root)
        footer.pack(fill=tk.X, side=tk.BOTTOM)
        self.chat = scrolledtext.ScrolledText(root, width=80, height=24, wrap=tk.WORD)
        self.chat.pack(fill=tk.BOTH, expand=True)
        self.chat.tag_config("welcome_title", font=("TkDefaultFont", 12, "bold"), justify=tk.CENTER)
        self.chat.tag_config("welcome", foreground="#4b5563", justify=tk.CENTER)
        self.chat.tag_config("hint", foreground="#6b7280", justify=tk.CENTER)
        self.chat.tag_config("user_label", foreground="#1d4ed8", justify=tk.RIGHT)
        self.chat.tag_config("user", foreground="#1e3a8a", justify=tk.RIGHT)
        self.chat.tag_config("model_label", foreground="#374151")
        self.chat.tag_config("model", foreground="#1f2937")
        self.chat.tag_config("time", foreground="#9ca3af")
        self.chat.tag_config("thinking", foreground="#6b7280")
        self.chat.config(state=tk.DISABLED)
        self.banner = tk.Frame(root, bg="#fee2e2")
        self.banner_text = tk.Label(self.banner, bg="#fee2e2", fg="#b91c1c", wraplength=560, justify=tk.LEFT)
        self.banner_text.pack(side=tk.LEFT, fill=tk.X, expand=True, padx=6, pady=4)
        tk.Button(self.banner, text="x", command=self.on_dismiss_error).pack(side=tk.RIGHT, padx=4)
        tk.Label(footer, text=INPUT_PLACEHOLDER, fg="#6b7280").pack(anchor=tk.W)
        self.entry = tk.Text(footer, height=3, wrap=tk.WORD)
        self.entry.pack(side=tk.LEFT, fill=tk.X, expand=True)
        self.entry.bind("<Return>", self.on_send_event)
        self.entry.bind("<Shift-Return>", lambda event: None)
        self.entry.bind("<KeyRelease>", lambda event: self.render_controls())
        self.send_btn = tk.Button(footer, text="Reframe", command=self.on_send)
        self.send_btn.pack(side=tk.LEFT, padx=4)
        self.unsubscribe = self.store.subscribe(self.on_state)
        self.root.protocol("WM_DELETE_WINDOW", self.on_close)
        self.loop_thread.start()
        self.render(self.snapshot)

    # ---- 事件 ----

    def on_send(self):
        text = self.entry.get("1.0", tk.END)
        if self.snapshot.pending or not text.strip():
            return
        self.entry.delete("1.0", tk.END)
        self.loop_thread.call(self.store.submit, text)

    def on_send_event(self, event):
        self.on_send()
        return "break"

    def on_clear(self):
        self.loop_thread.call(self.store.clear)

    def on_dismiss_error(self):
        self.dismissed_error = self.snapshot.last_error
        self.render(self.snapshot)

    def on_state(self, snapshot: ConversationSnapshot):
        # 在事件循环线程上被调用，切回 Tk 主线程绘制
        self.root.after(0, self.render, snapshot)

    def on_close(self):
        self.unsubscribe()
        self.loop_thread.call(end_session)
        self.loop_thread.stop()
        self.root.destroy()

    # ---- 绘制 ----

    def render(self, snapshot: ConversationSnapshot):
        self.snapshot = snapshot
        if snapshot.last_error is None:
            self.dismissed_error = None
        self.chat.config(state=tk.NORMAL)
        self.chat.delete("1.0", tk.END)
        for block in transcript_blocks(snapshot):
            self.chat.insert(tk.END, block.text, block.tag)
        self.chat.config(state=tk.DISABLED)
        self.chat.see(tk.END)
        banner = error_banner(snapshot)
        if banner and snapshot.last_error != self.dismissed_error:
            self.banner_text.config(text=banner)
            self.banner.pack(fill=tk.X, before=self.chat)
        else:
            self.banner.pack_forget()
        self.render_controls()

    def render_controls(self):
        state = controls_state(self.snapshot, self.entry.get("1.0", tk.END))
        self.entry.config(state=tk.NORMAL if state.input_enabled else tk.DISABLED)
        self.send_btn.config(
            text=state.submit_label,
            state=tk.NORMAL if state.submit_enabled else tk.DISABLED,
        )


if __name__ == "__main__":
    root = tk.Tk()
    app = App(root)
    root.mainloop()
