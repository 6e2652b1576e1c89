"""
Eligibility analysis engine.

Per-source scoring engines (chain, social graph, reputation, two bridges), the
historical benchmark comparator, the result cache and the orchestrator that
fans out to every engine and blends the results. Import concrete modules
directly (e.g. analysis_engine.orchestrator); this package stays import-light
so adapters can depend on analysis_engine.models without cycles.
"""
