"""Completion routing — fans job outcomes out to every configured sink.

A job's completion is never returned to the orchestrator.  Instead the
job runner dispatches a ``JobOutcome`` through the ``CompletionDispatcher``,
which delivers it to every registered sink.  No outcome is silently dropped.
"""
