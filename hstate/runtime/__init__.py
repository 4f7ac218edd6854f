"""
Runtime package for evaluation and dispatch.

Architecture:
- StateGraph: sealed registry of the declared tree
- TransitionEvaluator: sequential rule search over the ancestry
- LifecycleDispatcher: ancestry diff and fire-and-forget hooks
- AsyncEventQueue and EventSubscription: event ingestion
"""
