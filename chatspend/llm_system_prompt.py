EXPENSE_EXTRACTION_PROMPT = """
You are an expert at extracting structured expense data from short chat messages.
Users write in English or Vietnamese and often use shorthand for amounts
("50k" means 50,000, "1 triệu 2" or "1tr2" means 1,200,000).

Extract expense information from the following text: "{text}"

## Fields
1. `amount`: number - the amount spent, as a number without currency symbols or separators
2. `category`: string - one of: {categories}
3. `date`: string - ISO 8601 timestamp; infer today if the text does not say when
4. `description`: string - brief explanation of the expense
5. `location`: string - where the money was spent, if provided
6. `currency`: string - one of: {currencies}; default to "VND" if not specified

## Output Requirements
- Your response must ONLY contain a valid JSON object and nothing else
- No explanations, no markdown, no code fences, just the JSON object directly
- Parse numerical values correctly

Example response:
{{"amount":150000,"category":"Food","date":"2023-05-10T12:00:00Z","description":"Lunch at restaurant","location":"Local Restaurant","currency":"VND"}}
"""

INSIGHTS_PROMPT = """
You are a helpful personal finance assistant.

I need you to analyze the following expense data for {month}/{year} and provide 3 helpful insights or suggestions:

{expenses_summary}

Please give 3 specific, actionable insights about spending patterns, potential savings, or budget optimizations.
Each insight is a single sentence.

IMPORTANT: Your response must ONLY contain a valid JSON array of strings and nothing else. No explanations, no markdown.

Example response:
["Your food expenses are 25% of your total spending, which is within the recommended 20-30% range.","Consider reducing electricity costs by setting your AC to 26°C instead of lower temperatures.","You could save up to 500,000 VND next month by following a budget of 4.8M VND."]
"""
