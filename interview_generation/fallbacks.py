"""
Step 5 — Fallback Generator

Deterministic, backend-independent records used whenever the backend
path cannot produce one (no credential, network/HTTP failure, unusable
reply). This is a legitimate degraded operating mode: the output is
always schema-valid and depends only on the arguments.
"""

from typing import Callable, List, Optional, Tuple

from interview_generation.normalizer import (
    LONG_ANSWER_THRESHOLD,
    default_score,
)
from interview_generation.schemas import Evaluation, FollowUp, Question


def _follow_ups(pairs: List[Tuple[str, str]]) -> List[FollowUp]:
    return [FollowUp(text=text, suggested_answer=answer) for text, answer in pairs]


# ─── Question templates ────────────────────────────────────────────────────────
# (question template, [(follow-up, suggested answer) x3]); {role}/{topic} filled per call

QUESTION_TEMPLATES = [
    (
        "Tell me about your experience with {topic} as a {role}.",
        [
            (
                "What specific projects have you worked on?",
                "I've worked on several key projects involving this technology. Most notably, I led the "
                "development of a system that [specific accomplishment]. This required deep knowledge of "
                "[specific aspects of the topic] and resulted in [positive outcome like improved performance, "
                "reduced costs, etc.].",
            ),
            (
                "What challenges did you face?",
                "The main challenges included dealing with [specific technical challenge] and [another "
                "challenge]. For the first challenge, I approached it by [solution strategy]. For the second, "
                "I implemented [different solution approach]. These experiences taught me the importance of "
                "[lesson learned].",
            ),
            (
                "How did you overcome those challenges?",
                "I overcame these challenges through a combination of research, collaboration, and iterative "
                "problem-solving. Specifically, I researched [relevant information], collaborated with "
                "[relevant team members or experts], and implemented a solution that [specific details]. This "
                "approach not only solved the immediate problem but also improved our overall process.",
            ),
        ],
    ),
    (
        "What challenges have you faced with {topic}?",
        [
            (
                "How did you solve these challenges?",
                "I approached these challenges methodically. First, I identified the root causes through "
                "[analysis method]. Then, I developed a strategy that involved [specific approach]. I "
                "implemented this by [implementation details]. The result was [positive outcome], which "
                "demonstrated the effectiveness of my approach.",
            ),
            (
                "What tools or techniques did you use?",
                "I utilized several tools and techniques, including [specific tool/technique 1], [specific "
                "tool/technique 2], and [specific tool/technique 3]. I chose these because [rationale]. The "
                "combination of these tools allowed me to [benefit achieved], which was essential for "
                "successfully addressing the challenges.",
            ),
            (
                "What would you do differently now?",
                "With the benefit of hindsight and additional experience, I would make several changes to my "
                "approach. First, I would [specific change] because [reason]. Second, I would incorporate "
                "[new approach or technology] which would [benefit]. Finally, I would place more emphasis on "
                "[important aspect] earlier in the process.",
            ),
        ],
    ),
    (
        "How would you implement {topic} in a real-world scenario?",
        [
            (
                "What technologies would you use?",
                "I would select technologies based on the specific requirements, but my go-to stack would "
                "include [technology 1] for [reason], [technology 2] for [reason], and [technology 3] for "
                "[reason]. I've found this combination particularly effective for [specific advantage]. I "
                "would also consider [alternative technology] if [specific condition].",
            ),
            (
                "How would you ensure scalability?",
                "Scalability would be addressed through several strategies: First, implementing a [specific "
                "architecture pattern] to allow for horizontal scaling. Second, using [specific technology or "
                "approach] for efficient resource utilization. Third, implementing [caching strategy or other "
                "optimization]. I would also establish performance benchmarks and regular testing to "
                "proactively identify and address potential bottlenecks.",
            ),
            (
                "How would you test your implementation?",
                "My testing strategy would be comprehensive, including unit tests for individual components, "
                "integration tests for interactions between components, and end-to-end tests for complete "
                "workflows. I would use [specific testing frameworks] and implement CI/CD pipelines to "
                "automate testing. For performance, I would conduct load testing using [specific tools] to "
                "simulate expected and peak usage scenarios.",
            ),
        ],
    ),
    (
        "What best practices do you follow for {topic}?",
        [
            (
                "Why do you consider these best practices?",
                "I consider these best practices because they consistently lead to higher quality, more "
                "maintainable, and more efficient solutions. Specifically, [practice 1] reduces [specific "
                "problem] by [percentage or metric]. [Practice 2] improves [specific aspect] which is "
                "critical for [reason]. These aren't just theoretical; I've seen their impact firsthand in "
                "multiple projects.",
            ),
            (
                "How do you stay updated with evolving best practices?",
                "I stay updated through multiple channels: regularly reading industry publications like "
                "[specific sources], participating in communities such as [specific forums or groups], "
                "attending conferences and webinars, and following thought leaders in the field. I also make "
                "it a point to experiment with new approaches in side projects to evaluate their "
                "effectiveness before incorporating them into production work.",
            ),
            (
                "Can you give an example of implementing these practices?",
                "In a recent project, I implemented [specific best practice] when developing [specific "
                "feature or system]. This involved [specific implementation details]. The result was "
                "[measurable improvement] compared to our previous approach. This success led us to adopt "
                "this practice across other projects, resulting in [broader positive impact].",
            ),
        ],
    ),
    (
        "How do you stay updated with the latest trends in {topic}?",
        [
            (
                "What resources do you use?",
                "I rely on a diverse set of resources to stay current. These include technical blogs like "
                "[specific blogs], newsletters such as [specific newsletters], podcasts including [specific "
                "podcasts], and online learning platforms like [specific platforms]. I also participate in "
                "[specific community or forum] where professionals share insights and discuss emerging trends.",
            ),
            (
                "How do you evaluate new technologies or approaches?",
                "My evaluation process is systematic: First, I research the technology to understand its "
                "purpose, benefits, and potential drawbacks. Then, I build small proof-of-concept projects to "
                "test it hands-on. I assess factors like performance, maintainability, community support, and "
                "compatibility with existing systems. Finally, I consider the learning curve and "
                "implementation costs before making recommendations.",
            ),
            (
                "How do you incorporate new knowledge into your work?",
                "I incorporate new knowledge incrementally. When I learn something valuable, I first document "
                "it for my own reference. Then, I identify opportunities to apply it in low-risk contexts, "
                "such as internal tools or non-critical features. As I gain confidence, I introduce it to "
                "more significant aspects of projects. I also share what I've learned with my team through "
                "knowledge-sharing sessions and documentation.",
            ),
        ],
    ),
]


def fallback_question(role: str, topic: str, index: int) -> Question:
    """Template question at `index`, cycling through QUESTION_TEMPLATES."""
    template, pairs = QUESTION_TEMPLATES[index % len(QUESTION_TEMPLATES)]
    return Question(text=template.format(role=role, topic=topic), follow_ups=_follow_ups(pairs))


def fallback_questions(role: str, topic: str, count: int = 5) -> List[Question]:
    """Exactly `count` template questions; templates repeat when count > 5."""
    return [fallback_question(role, topic, i) for i in range(max(count, 0))]


# ─── Follow-up templates ───────────────────────────────────────────────────────

EXPERIENCE_FOLLOW_UPS = [
    (
        "What specific projects have you worked on that involved this technology?",
        "I've worked on several key projects involving this technology. Most notably, I led the development "
        "of a system that [specific accomplishment]. This required deep knowledge of [specific aspects of "
        "the topic] and resulted in [positive outcome like improved performance, reduced costs, etc.].",
    ),
    (
        "What challenges did you face when implementing this technology?",
        "The main challenges included dealing with [specific technical challenge] and [another challenge]. "
        "For the first challenge, I approached it by [solution strategy]. For the second, I implemented "
        "[different solution approach]. These experiences taught me the importance of [lesson learned].",
    ),
    (
        "How did this experience change your approach to similar problems?",
        "This experience fundamentally changed my approach by teaching me to [key lesson]. Now, when facing "
        "similar problems, I first [new approach] and make sure to [important consideration]. This has made "
        "my solutions more [positive quality] and [another positive quality].",
    ),
]

IMPLEMENTATION_FOLLOW_UPS = [
    (
        "What technologies or frameworks would you choose for this implementation?",
        "I would select technologies based on the specific requirements, but my go-to stack would include "
        "[technology 1] for [reason], [technology 2] for [reason], and [technology 3] for [reason]. I've "
        "found this combination particularly effective for [specific advantage].",
    ),
    (
        "How would you ensure the solution is scalable and maintainable?",
        "To ensure scalability and maintainability, I would implement [architecture pattern] which allows "
        "for [benefit]. I would also follow principles like [principle 1] and [principle 2], and establish "
        "clear coding standards and documentation practices. Regular code reviews and automated testing "
        "would be essential components of the development process.",
    ),
    (
        "What potential pitfalls would you watch out for in this implementation?",
        "The main pitfalls to watch for include [pitfall 1], [pitfall 2], and [pitfall 3]. To mitigate "
        "these risks, I would [mitigation strategy 1] and [mitigation strategy 2]. I would also set up "
        "monitoring for [key metrics] to catch issues early before they impact users.",
    ),
]

BEST_PRACTICE_FOLLOW_UPS = [
    (
        "How do you stay updated with evolving best practices in this area?",
        "I stay updated through multiple channels: regularly reading industry publications like [specific "
        "sources], participating in communities such as [specific forums or groups], attending conferences "
        "and webinars, and following thought leaders in the field. I also make it a point to experiment "
        "with new approaches in side projects.",
    ),
    (
        "Can you give an example of implementing these best practices in a real project?",
        "In a recent project, I implemented [specific best practice] when developing [specific feature or "
        "system]. This involved [specific implementation details]. The result was [measurable improvement] "
        "compared to our previous approach. This success led us to adopt this practice across other projects.",
    ),
    (
        "How do you balance following best practices with practical constraints like deadlines?",
        "Balancing best practices with practical constraints requires pragmatism. I prioritize practices "
        "that deliver the most value for the specific context. For critical aspects like security and data "
        "integrity, I never compromise. For other areas, I might implement a simplified version initially "
        "with a plan to refine it in future iterations. Clear communication with stakeholders about these "
        "trade-offs is essential.",
    ),
]


def _default_follow_ups(question: str) -> List[Tuple[str, str]]:
    return [
        (
            f'Could you elaborate more on the key concepts related to "{question[:30]}..."?',
            "The key concepts include [specific details]. These are important because [reasons]. In "
            "practice, they are applied by [examples].",
        ),
        (
            "What practical experience do you have with this topic?",
            "I've worked on several projects involving this topic. For example, I [specific project "
            "details]. The challenges I faced included [challenges] and I solved them by [solutions].",
        ),
        (
            "How would you implement this in a real-world scenario?",
            "In a real-world scenario, I would first [step 1], then [step 2]. I would use "
            "[technologies/methods] because [reasons]. This approach has proven effective in [similar "
            "situations].",
        ),
    ]


def _contains_any(*keywords: str) -> Callable[[str], bool]:
    return lambda text: any(keyword in text for keyword in keywords)


# Evaluated top to bottom on the lower-cased question; first match wins
FOLLOW_UP_RULES: List[Tuple[Callable[[str], bool], Callable[[str], List[Tuple[str, str]]]]] = [
    (_contains_any("experience", "worked with"), lambda _q: EXPERIENCE_FOLLOW_UPS),
    (_contains_any("implement", "build", "create"), lambda _q: IMPLEMENTATION_FOLLOW_UPS),
    (_contains_any("best practice", "approach"), lambda _q: BEST_PRACTICE_FOLLOW_UPS),
    (lambda _text: True, _default_follow_ups),
]


def fallback_follow_ups(question: str, answer: Optional[str] = None) -> List[FollowUp]:
    """
    Three follow-ups chosen by keyword match against the question text.

    `answer` is accepted for signature parity with the backend path; the
    template choice depends on the question alone.
    """
    question = question or ""
    lowered = question.lower()
    for matches, build in FOLLOW_UP_RULES:
        if matches(lowered):
            return _follow_ups(build(question))
    raise AssertionError("FOLLOW_UP_RULES must end with an unconditional rule")


# ─── Evaluation ────────────────────────────────────────────────────────────────

CORRECT_FEEDBACK = "Your answer demonstrates good understanding of the topic."
INCORRECT_FEEDBACK = "Your answer could be more comprehensive."
UNAVAILABLE_FEEDBACK = (
    "We couldn't evaluate your answer at this time. Please continue to the next question."
)

CORRECT_STRENGTHS = ["Comprehensive explanation", "Good structure and clarity", "Relevant examples provided"]
CORRECT_IMPROVEMENTS = [
    "Consider adding more specific technical details",
    "You could mention alternative approaches",
]
INCORRECT_STRENGTHS = ["Good attempt at addressing the question"]
INCORRECT_IMPROVEMENTS = [
    "Provide more detailed explanation",
    "Include specific examples",
    "Consider discussing trade-offs and alternatives",
]


def fallback_evaluation(answer_length: int, unavailable: bool = False) -> Evaluation:
    """
    Length-based evaluation: correct iff the answer is longer than 100 characters.

    With `unavailable=True` the feedback says the evaluation could not be
    performed and no strengths/improvements are listed.
    """
    is_correct = answer_length > LONG_ANSWER_THRESHOLD
    if unavailable:
        return Evaluation(
            is_correct=is_correct,
            feedback=UNAVAILABLE_FEEDBACK,
            score=default_score(is_correct),
        )
    if is_correct:
        return Evaluation(
            is_correct=True,
            feedback=CORRECT_FEEDBACK,
            score=default_score(True),
            strengths=CORRECT_STRENGTHS,
            improvements=CORRECT_IMPROVEMENTS,
        )
    return Evaluation(
        is_correct=False,
        feedback=INCORRECT_FEEDBACK,
        score=default_score(False),
        strengths=INCORRECT_STRENGTHS,
        improvements=INCORRECT_IMPROVEMENTS,
    )


def evaluation_from_prose(text: str, answer_length: int) -> Evaluation:
    """
    Salvage an evaluation from a non-JSON reply: the prose becomes the
    feedback, and the verdict is "correct" mentioned without "incorrect".
    """
    feedback = (text or "").strip()
    if not feedback:
        return fallback_evaluation(answer_length)
    lowered = feedback.lower()
    is_correct = "correct" in lowered and "incorrect" not in lowered
    return Evaluation(is_correct=is_correct, feedback=feedback, score=default_score(is_correct))
