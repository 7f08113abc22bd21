"""
LLM commentary: prompt composition and delivery.

Submodules:
  prompt         builds the prompt text from the frozen ledger and narrative
  openai_client  posts the prompt to the OpenAI chat completions endpoint
"""
