"""
Review sentiment labelling.

Words are scored with the AFINN lexicon (-5 to +5), a negator directly in
front of a word flips its score, and the summed score decides the label
(> 1 positive, < -1 negative, otherwise neutral).
"""

from collections import Counter

from afinn import Afinn
from nltk.tokenize import RegexpTokenizer


POSITIVE_THRESHOLD = 1
NEGATIVE_THRESHOLD = -1

NEGATORS = {
    "not", "no", "never", "dont", "don't", "didnt", "didn't", "isnt", "isn't",
    "wasnt", "wasn't", "cant", "can't", "wont", "won't", "hardly",
}

STOPWORDS = {
    "the", "a", "an", "and", "but", "or", "for", "with", "in", "on", "at",
    "to", "was", "were", "is", "are",
}

afinn = Afinn(language="en")
tokenizer = RegexpTokenizer(r"[a-z0-9']+")


def tokenize(text):
    return tokenizer.tokenize((text or "").lower())


def word_score(token):
    return int(afinn.score(token))


def label_for_score(score):
    if score > POSITIVE_THRESHOLD:
        return "positive"
    if score < NEGATIVE_THRESHOLD:
        return "negative"
    return "neutral"


def top_terms(tokens, limit=5):
    """Most frequent non-stopword tokens longer than three characters."""
    terms = [t for t in tokens if len(t) > 3 and t not in STOPWORDS]
    return [term for term, _ in Counter(terms).most_common(limit)]


def analyze_text(text):
    tokens = tokenize(text)
    score = 0
    positive, negative = [], []
    for i, token in enumerate(tokens):
        weight = word_score(token)
        if not weight:
            continue
        if i > 0 and tokens[i - 1] in NEGATORS:
            weight = -weight
        score += weight
        (positive if weight > 0 else negative).append(token)

    return {
        "score": score,
        "comparative": score / len(tokens) if tokens else 0,
        "sentiment": label_for_score(score),
        "topTerms": top_terms(tokens),
        "positive": positive,
        "negative": negative,
    }


def classify(text):
    return analyze_text(text)["sentiment"]


def analyze_reviews(event_title, reviews):
    """Per-event sentiment breakdown, top topics and readable insights."""
    if not reviews:
        return {
            "event": event_title,
            "insights": ["Not enough reviews to generate meaningful insights."],
            "sentimentBreakdown": {"positive": 0, "neutral": 0, "negative": 0},
            "averageRating": 0,
            "reviewCount": 0,
            "topTopics": [],
        }

    analyzed = []
    for review in reviews:
        result = analyze_text(review.review_text)
        analyzed.append({
            "id": review.id,
            "rating": review.rating,
            "sentiment": review.sentiment or result["sentiment"],
            "score": result["score"],
            "topTerms": result["topTerms"],
        })

    total = len(analyzed)
    counts = Counter(item["sentiment"] for item in analyzed)
    breakdown = {
        label: round(counts.get(label, 0) / total * 100)
        for label in ("positive", "neutral", "negative")
    }
    average_rating = sum(item["rating"] for item in analyzed) / total

    topic_counts = Counter(term for item in analyzed for term in item["topTerms"])
    topics = [{"term": term, "count": count} for term, count in topic_counts.most_common(10)]

    return {
        "event": event_title,
        "insights": generate_insights(event_title, average_rating, breakdown, topics, analyzed),
        "sentimentBreakdown": breakdown,
        "averageRating": round(average_rating, 2),
        "reviewCount": total,
        "topTopics": topics,
    }


def generate_insights(event_title, average_rating, breakdown, topics, analyzed):
    insights = [
        f"Average rating for {event_title} is {average_rating:.1f} out of 5 stars.",
        f"{breakdown['positive']}% of reviews express positive sentiment, "
        f"while {breakdown['negative']}% express negative sentiment.",
    ]

    if topics:
        insights.append(
            "Most frequently mentioned aspects: " + ", ".join(t["term"] for t in topics[:5]) + "."
        )

    liked = [term for item in analyzed if item["sentiment"] == "positive" for term in item["topTerms"]][:3]
    if liked:
        insights.append(f"Attendees particularly enjoyed aspects related to: {', '.join(liked)}.")

    disliked = [term for item in analyzed if item["sentiment"] == "negative" for term in item["topTerms"]][:3]
    if disliked:
        insights.append(f"Areas for improvement include: {', '.join(disliked)}.")

    if breakdown["positive"] > 70:
        insights.append("This event is performing exceptionally well. Consider organizing similar events in the future.")
    elif breakdown["negative"] > 30:
        insights.append("This event may need significant improvements before repeating it.")
    else:
        insights.append("This event is performing adequately. Consider addressing common concerns in future iterations.")

    return insights
