"""
visualizer.py — Interactive Dye Viewer
=======================================
Shows the simulation in a matplotlib window and feeds mouse input back into
it.

Mouse:
  - Left button drag   push the fluid along the drag
  - Right button drag  pour dye under the cursor
Keys:
  - m          toggle dye / velocity view
  - r, space   reset to zero
  - q, escape  close

The image is drawn with origin='lower', so axes data coordinates are grid
coordinates: (0, 0) is the bottom-left cell, y grows upward. Mouse events
can therefore be handed to ForceInput as-is.
"""

import numpy as np
import matplotlib.pyplot as plt
import matplotlib.animation as animation
from matplotlib.backend_bases import MouseButton

from dyeflow import Simulator

MODE_NAMES = {0: "DYE", 1: "VELOCITY"}


class FluidVisualizer:
    """
    Real-time viewer of the dye simulation.

    Usage (standalone):
        from dyeflow import Simulator
        from visualizer import FluidVisualizer

        sim = Simulator(width=128, height=128)
        viz = FluidVisualizer(sim)
        viz.run()  # Opens live window
    """

    def __init__(self, simulation: Simulator):
        self.sim = simulation
        self._setup_figure()
        self._connect_events()

    def _setup_figure(self):
        """Initialize the matplotlib figure with a single image."""
        self.fig, self.ax = plt.subplots(figsize=(7, 7))
        self.fig.patch.set_facecolor('#0a0a0a')

        ax = self.ax
        ax.set_facecolor('#0a0a0a')
        ax.set_xticks([])
        ax.set_yticks([])
        for spine in ax.spines.values():
            spine.set_edgecolor('#333333')

        self.img = ax.imshow(
            self._frame(),
            interpolation='bilinear',
            origin='lower',
            aspect='equal'
        )

        self.title_text = self.fig.suptitle(
            "dyeflow | Frame 0 | DYE view | 0.0 FPS",
            color='#cccccc', fontsize=10, fontfamily='monospace'
        )

        plt.tight_layout()

    def _connect_events(self):
        canvas = self.fig.canvas
        canvas.mpl_connect('button_press_event', self.on_press)
        canvas.mpl_connect('motion_notify_event', self.on_move)
        canvas.mpl_connect('button_release_event', self.on_release)
        canvas.mpl_connect('key_press_event', self.on_key)

    def _frame(self) -> np.ndarray:
        return np.clip(self.sim.render(), 0.0, 1.0)

    # ── Pointer source ────────────────────────────────────────────────────

    def on_press(self, event):
        if event.inaxes is not self.ax or event.xdata is None:
            return
        button = 0 if event.button == MouseButton.LEFT else 1
        self.sim.pointer.press(button, event.xdata, event.ydata)

    def on_move(self, event):
        # Outside the axes xdata is None; keep the last in-grid location
        if event.xdata is None or event.ydata is None:
            return
        self.sim.pointer.move(event.xdata, event.ydata)

    def on_release(self, event):
        self.sim.pointer.release()

    def on_key(self, event):
        if event.key == 'm':
            mode = self.sim.toggle_render_mode()
            print(f"[Viewer] Render mode: {MODE_NAMES[mode]}")
        elif event.key in ('r', ' '):
            self.sim.reset()
        elif event.key in ('q', 'escape'):
            plt.close(self.fig)

    # ── Animation ─────────────────────────────────────────────────────────

    def update(self, frame_num):
        """Called by FuncAnimation each frame. Steps sim and updates the image."""
        metrics = self.sim.step()

        self.img.set_data(self._frame())
        self.title_text.set_text(
            f"dyeflow | Frame {metrics['frame']} | {MODE_NAMES[self.sim.render_mode]} view | "
            f"{metrics['fps']:.1f} FPS | "
            f"div_max={metrics['divergence_max']:.5f}"
        )
        return [self.img, self.title_text]

    def run(self, fps: int = 60):
        """
        Start the live animation window. Blocks until it is closed.

        Args:
            fps : Target tick rate (one simulation tick per drawn frame)
        """
        interval_ms = max(1, int(1000 / fps))
        self.anim = animation.FuncAnimation(
            self.fig,
            self.update,
            interval=interval_ms,
            blit=False,
            cache_frame_data=False
        )
        plt.show()
        self.sim.close()
