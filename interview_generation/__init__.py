"""
Interview Generation Pipeline
interview_generation/

Turns free-text LLM replies into schema-guaranteed interview data.

Steps (one backend call per request):
1. Prompt Builder      — role/topic-parameterized instruction + output format
2. GPT Client          — single chat-completions call, outcome classification
3. Response Extractor  — locate and parse the JSON payload inside the reply
4. Schema Normalizer   — total, default-filling coercion into canonical records
5. Fallback Generator  — deterministic records when steps 2-3 fail
"""
