# prompts.py
from typing import List, Sequence

from llm import ChatMessage


def build_condenser_messages(scraped_text: str) -> List[ChatMessage]:
    system_prompt = """You are a content condenser that extracts key facts and important information from text.
Your task is to analyze the provided text and extract only factual, important points.
Focus on:
- Main concepts and ideas
- Important details and supporting information
- Key insights and takeaways
- Factual information only (no opinions or speculation)

Return your response as a JSON array of strings, where each string is a concise key point.
Each key point should be a complete, standalone fact or concept.
Keep key points clear, specific, and informative."""

    user_prompt = f"""Please extract the key facts and important information from the following text:

{scraped_text}

Return the key points as a JSON array of strings."""

    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": user_prompt},
    ]


def build_quiz_generator_messages(key_points_json: str, question_count: int = 5) -> List[ChatMessage]:
    system_prompt = """
You are a professional quiz designer.

STRICT, NON-NEGOTIABLE RULES:
- You MUST generate EXACTLY the requested number of questions
- The number of questions MUST be between 5 and 10
- Each question MUST have exactly 4 options
- EXACTLY ONE option must be correct
- The correct answer MUST be indicated using "answerIndex" (0-3)
- Questions MUST be answerable ONLY using the provided key points
- Do NOT repeat questions
- Do NOT include explanations
- Output VALID JSON ONLY
- Do NOT include markdown
- Do NOT include any text outside the JSON object
""".strip()

    user_prompt = f"""
Generate a quiz based on the following key points:

{key_points_json}

REQUIREMENTS:
- Number of questions: EXACTLY {question_count}
- Difficulty: easy to medium
- Question style: direct factual recall
- Avoid ambiguous wording

You MUST return ONLY a valid JSON object with this exact structure:

{{
  "title": "string",
  "questions": [
    {{
      "question": "string",
      "options": ["string", "string", "string", "string"],
      "answerIndex": number
    }}
  ]
}}

IMPORTANT:
- "questions" array length MUST be exactly {question_count}
- "answerIndex" MUST be between 0 and 3
- No extra fields

Return ONLY the JSON object. Nothing else.
""".strip()

    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": user_prompt},
    ]


def build_topic_enrichment_messages(title: str, content: Sequence[str]) -> List[ChatMessage]:
    content_text = "\n\n".join(content)

    system_prompt = """You are a topic enrichment assistant that improves topic metadata.
Your task is to analyze a topic (title + content) and return:
1. A rewritten title (maximum 6 words) that is concise and descriptive
2. A summary with 2-3 bullet points (each bullet should be a complete sentence)
3. An importance score from 1-5 (1 = least important, 5 = most important)

Return your response as a JSON object with this exact structure:
{
  "title": "rewritten title with max 6 words",
  "summary": ["bullet point 1", "bullet point 2", "bullet point 3"],
  "importance": 3
}

Rules:
- Title must be 6 words or fewer, clear and descriptive
- Summary must have exactly 2-3 bullet points
- Each bullet point must be a complete sentence
- Importance must be an integer between 1 and 5
- Return ONLY valid JSON, no markdown, no explanations"""

    user_prompt = f"""Please enrich the following topic:

Title: {title}

Content:
{content_text}

Return the enriched topic as a JSON object with title, summary (2-3 bullets), and importance (1-5)."""

    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": user_prompt},
    ]


DIFFICULTY_GUIDELINES = """Difficulty guidelines:
- Easy: Direct factual recall, simple concepts
- Medium: Requires understanding of concepts, some analysis
- Hard: Complex reasoning, synthesis of multiple concepts"""


def build_topic_quiz_messages(
    topic_content: Sequence[str],
    topic_title: str,
    difficulty: str = "medium",
    question_count: int = 3,
) -> List[ChatMessage]:
    content_text = "\n\n".join(topic_content)

    system_prompt = f"""
You are a professional quiz designer specializing in topic-based quizzes.

STRICT, NON-NEGOTIABLE RULES:
- You MUST generate EXACTLY the requested number of questions ({question_count})
- Each question MUST have exactly 4 options
- EXACTLY ONE option must be correct
- The correct answer MUST be indicated using "answerIndex" (0-3)
- Questions MUST be answerable ONLY using the provided topic content
- Do NOT repeat questions
- Do NOT include explanations
- Output VALID JSON ONLY
- Do NOT include markdown
- Do NOT include any text outside the JSON object

{DIFFICULTY_GUIDELINES}
""".strip()

    user_prompt = f"""
Generate a quiz based on the following topic:

Topic: {topic_title}

Content:
{content_text}

REQUIREMENTS:
- Number of questions: EXACTLY {question_count}
- Difficulty: {difficulty}
- Question style: Appropriate for {difficulty} difficulty level
- Base questions ONLY on the provided topic content
- Avoid ambiguous wording

You MUST return ONLY a valid JSON object with this exact structure:

{{
  "questions": [
    {{
      "question": "string",
      "options": ["string", "string", "string", "string"],
      "answerIndex": number
    }}
  ]
}}

IMPORTANT:
- "questions" array length MUST be exactly {question_count}
- "answerIndex" MUST be between 0 and 3
- No title field (questions only)

Return ONLY the JSON object. Nothing else.
""".strip()

    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": user_prompt},
    ]
