"""SmartPlan: per-user tasks, notes, reminders and LLM-assisted planning."""

__version__ = "0.1.0"
