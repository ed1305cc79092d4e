from typing import Iterable, List, Optional
from urllib.parse import urlencode

from ..domain.session import AnswerRecord, QuizSession

REVIEW_BELOW = 50
ADVANCED_FROM = 70


def recommend(percentage: int, answers: Iterable[AnswerRecord]) -> List[dict]:
    """Post-quiz guidance from the score band and the missed questions."""
    recommendations: List[dict] = []

    if percentage < REVIEW_BELOW:
        recommendations.append({
            "type": "study",
            "title": "Review Disaster Preparedness Basics",
            "description": "Focus on fundamental disaster preparedness concepts",
        })

    if percentage >= ADVANCED_FROM:
        recommendations.append({
            "type": "advanced",
            "title": "Advanced Scenarios",
            "description": "Try more complex disaster response scenarios",
        })

    missed = [a.question_id for a in answers if not a.correct]
    if missed:
        recommendations.append({
            "type": "targeted_learning",
            "title": "Focus Areas",
            "description": "Review topics where you need improvement",
            "topics": missed,
        })

    return recommendations


def content_recommendations(
    completed: List[QuizSession],
    max_score: int,
    story_type: Optional[str] = None,
    location: Optional[str] = None,
    api_prefix: str = "",
) -> dict:
    """Site-wide suggestions, with an advanced quiz for strong performers.

    ``completed`` holds one user's completed sessions; pass an empty list for
    anonymous visitors to skip the performance lookup.
    """
    recommendations = [
        {
            "type": "quiz",
            "title": "Disaster Preparedness Quiz",
            "description": "Test your knowledge about disaster preparedness and response",
            "difficulty": "beginner",
            "estimated_time": "10 minutes",
            "action_url": f"{api_prefix}/quiz/start",
        },
        {
            "type": "story",
            "title": "Related Stories",
            "description": "Explore stories similar to your interests",
            "action_url": "/api/stories?" + urlencode({"type": story_type or "", "location": location or ""}),
        },
        {
            "type": "educational",
            "title": "Smong: Traditional Tsunami Warning",
            "description": "Learn about Aceh's traditional early warning system",
            "difficulty": "beginner",
            "estimated_time": "5 minutes",
        },
    ]

    performance = None
    if completed:
        avg = sum(s.score for s in completed) / len(completed)
        performance = {"avg_score": round(avg, 2), "quiz_count": len(completed)}
        # two thirds of the maximum: 20 of 30 on the bundled bank
        if avg * 3 > max_score * 2:
            recommendations.append({
                "type": "advanced_quiz",
                "title": "Advanced Disaster Response Scenarios",
                "description": "Challenge yourself with complex disaster response situations",
                "difficulty": "advanced",
                "estimated_time": "15 minutes",
            })

    return {"recommendations": recommendations, "user_performance": performance}
