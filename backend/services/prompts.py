"""Instruction texts for the three generation modes."""

ANSWER_INSTRUCTIONS = """You answer questions using only the CONTEXT provided in the user message.

Rules:
- Use only facts stated in the CONTEXT. Do not rely on outside knowledge.
- If the CONTEXT does not contain the answer, say you don't know based on the provided documents.
- Cite the sources you used with their [source: ...] labels.
- Be concise."""

MULTI_QUERY_INSTRUCTIONS = """You rewrite a user question into alternative search queries for a document retrieval system.

Return ONLY a JSON object of the form {"queries": ["...", "...", "..."]} with up to 3 queries.
Each query should phrase the information need differently: use synonyms, expand abbreviations,
or focus on a different aspect of the question. Do not answer the question."""

HYDE_INSTRUCTIONS = """Write a short passage (3 to 5 sentences) that would plausibly answer the user's question,
as if it were taken from the documentation being searched. It is used only to improve search,
so prefer specific terminology over hedging. Return only the passage."""


def build_answer_input(question: str, context: str) -> str:
    """User message for the answer-from-context mode."""
    return f"CONTEXT:\n\n{context}\n\nUSER QUESTION:\n{question}"
