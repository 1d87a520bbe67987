"""
Prompt templates for the three backend operations.

Each template states the role/topic context and an explicit output-format
instruction. Replies are still treated as untrusted text.
"""

from typing import Optional


# ─── Questions ─────────────────────────────────────────────────────────────────

QUESTIONS_SYSTEM = "You are an expert technical interviewer who creates challenging questions."

QUESTIONS_PROMPT = """You are an expert technical interviewer specializing in {role} positions with focus on {topic}.

Generate {count} challenging technical interview questions about {topic} for a {role} position.

For each question, also provide 3 related follow-up questions that an interviewer might ask to dig deeper into the candidate's knowledge. For each follow-up question, include a suggested answer that a strong candidate might give.

Your response should be in JSON format as an array of objects, where each object has:
1. A 'question' field with the main interview question
2. A 'followUpQuestions' field with an array of objects, each containing:
   a. 'question': the follow-up question text
   b. 'suggestedAnswer': a concise but comprehensive suggested answer

Example format:
[
  {{
    "question": "Main Question 1?",
    "followUpQuestions": [
      {{"question": "Follow-up 1?", "suggestedAnswer": "A strong answer to follow-up 1..."}},
      {{"question": "Follow-up 2?", "suggestedAnswer": "A strong answer to follow-up 2..."}},
      {{"question": "Follow-up 3?", "suggestedAnswer": "A strong answer to follow-up 3..."}}
    ]
  }}
]
"""


# ─── Follow-ups ────────────────────────────────────────────────────────────────

FOLLOW_UP_SYSTEM = (
    "You are an expert technical interviewer who creates challenging follow-up questions. "
    "Always respond with valid JSON."
)

FOLLOW_UP_PROMPT = """You are an expert technical interviewer specializing in {role} positions with focus on {topic}.

Based on the following interview question:

Question: {question}

{answer_context}

Generate 3 challenging follow-up questions that would help assess the candidate's depth of knowledge on this topic.
For each follow-up question, provide a suggested answer that a strong candidate might give.

Your response should be in JSON format as an array of objects, where each object has:
1. A 'question' field with the follow-up question
2. A 'suggestedAnswer' field with a suggested answer

Example format:
[
  {{"question": "Follow-up question 1?", "suggestedAnswer": "A strong answer to follow-up 1..."}},
  {{"question": "Follow-up question 2?", "suggestedAnswer": "A strong answer to follow-up 2..."}},
  {{"question": "Follow-up question 3?", "suggestedAnswer": "A strong answer to follow-up 3..."}}
]

Only respond with the JSON array, nothing else.
"""

ANSWER_CONTEXT = """The candidate has provided the following answer:

Answer: {answer}

Based on this answer, generate follow-up questions that probe deeper into the topic."""

NO_ANSWER_CONTEXT = "Generate follow-up questions that would naturally follow this initial question."


# ─── Evaluation ────────────────────────────────────────────────────────────────

EVALUATION_SYSTEM = (
    "You are an expert technical interviewer who evaluates answers to interview questions. "
    "Always respond with valid JSON."
)

EVALUATION_PROMPT = """You are an expert technical interviewer specializing in {role} positions with focus on {topic}.

Evaluate the following answer to this interview question:

Question: {question}

Answer: {answer}

Evaluate if the answer is correct and provide constructive feedback.
Your response should be in JSON format with the following fields:
1. "isCorrect": a boolean indicating if the answer is correct (true) or incorrect (false)
2. "feedback": a string with constructive feedback about the answer (2-3 sentences)
3. "score": a number from 0 to 10 rating the quality of the answer
4. "strengths": an array of strings listing key strengths of the answer
5. "improvements": an array of strings listing areas for improvement
"""


def build_questions_prompt(role: str, topic: str, count: int) -> str:
    return QUESTIONS_PROMPT.format(role=role, topic=topic, count=count)


def build_follow_up_prompt(question: str, answer: Optional[str], role: str, topic: str) -> str:
    if answer and answer.strip():
        answer_context = ANSWER_CONTEXT.format(answer=answer.strip())
    else:
        answer_context = NO_ANSWER_CONTEXT
    return FOLLOW_UP_PROMPT.format(
        role=role,
        topic=topic,
        question=question,
        answer_context=answer_context,
    )


def build_evaluation_prompt(question: str, answer: str, role: str, topic: str) -> str:
    return EVALUATION_PROMPT.format(role=role, topic=topic, question=question, answer=answer)
