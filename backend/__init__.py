"""
AI Company Matcher Backend.

Core components:
- pipeline: Orchestrator, dispatch (queued or inline), progress reporting
- tools: DeepSeek, Apollo and Hunter clients, PDF parser
- db: Job, company and profile stores
- models: Data models for jobs, companies and profiles
"""
