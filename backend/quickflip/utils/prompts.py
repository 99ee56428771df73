"""
Prompts sent to the OpenAI chat models.
"""

SINGLE_ITEM_ANALYSIS = """You are an expert at analyzing product images for online marketplace listings (eBay, Poshmark, Facebook Marketplace, etc.).

Given this image, extract the following information:

1. ITEM: The specific name/title of the item (be descriptive but concise, max 80 chars)

2. CATEGORY: The most specific category path (e.g., "Electronics > Cell Phones & Accessories > Headphones" or "Clothing, Shoes & Accessories > Men's Shoes > Athletic Shoes")

3. CONDITION: One of: New, Like New, Good, Fair, Poor
   - Include specific condition details (scratches, wear patterns, functionality issues)

4. DESCRIPTION: A detailed 2-3 sentence description highlighting:
   - Key features and specifications
   - Notable condition details
   - What makes this item valuable or unique

5. VALUE: Estimated resale value range in format "$XX - $YY" based on condition and market demand

6. ATTRIBUTES: Extract category-specific attributes as key-value pairs. Based on the category, include ONLY relevant attributes:

   For FOOTWEAR: Brand, US Shoe Size, Width, Color, Style, Material
   For ELECTRONICS: Brand, Model, Storage Capacity, Color, Connectivity, Operating System
   For CLOTHING: Brand, Size, Size Type, Color, Material, Style, Fit
   For BOOKS: Title, Author, Format, ISBN, Publisher, Publication Year, Language
   For AUDIO EQUIPMENT: Brand, Model, Type, Connectivity, Color, Features
   For SPORTS EQUIPMENT: Brand, Sport, Size, Material, Color
   For HOME GOODS: Brand, Material, Dimensions, Color, Style, Room Type
   For OTHER CATEGORIES: Extract the most relevant identifying attributes

   **IMPORTANT**:
   - Use "Not Specified" or "Unknown" ONLY if truly not visible in the image
   - Extract as many attributes as possible from visible details
   - Be specific (e.g., "Nike" not "Unknown", "Size 10.5" not "Not Specified")
   - Format as JSON object: {"Brand": "Nike", "US Shoe Size": "10.5", "Color": "Black/White"}

Format your response EXACTLY as follows (no extra text):

ITEM: [item name]
CATEGORY: [category path]
CONDITION: [condition]
DESCRIPTION: [description]
VALUE: [value range]
ATTRIBUTES: {"key1": "value1", "key2": "value2", ...}"""


def image_data_url(base64_image: str) -> str:
    return f"data:image/jpeg;base64,{base64_image}"


def single_item_messages(base64_image: str) -> list:
    """Chat messages for one photographed item: the fixed prompt plus the image."""
    return [
        {
            "role": "user",
            "content": [
                {"type": "text", "text": SINGLE_ITEM_ANALYSIS},
                {"type": "image_url", "image_url": {"url": image_data_url(base64_image)}},
            ],
        }
    ]


BULK_ITEM_ANALYSIS = """You are an expert at identifying multiple items for resale. Analyze this image and identify ALL sellable items you can see. For each item, provide detailed analysis.

Respond in this EXACT format:

ITEM_1:
NAME: [Exact product name, brand, model if identifiable]
CONDITION: [New/Like New/Good/Fair/Poor based on visible condition]
DESCRIPTION: [2-3 sentences suitable for eBay listing]
VALUE: $[low]-$[high] [estimated resale value range]
CATEGORY: [eBay category]
LOCATION: [describe where in image - "top left", "center", etc.]

ITEM_2:
[repeat format if another item found]

SUMMARY:
TOTAL_COUNT: [number of sellable items found]
TOTAL_VALUE: $[sum of low estimates]-$[sum of high estimates]
SCENE_DESCRIPTION: [brief description of the scene/setting]

Be thorough but concise. If you see fewer than 3 items, that's fine - just analyze what you can clearly identify."""


PRICE_RESEARCH = """I need you to research current market prices for this item: "{item_name}"
Category: {category}

Please provide realistic price estimates for each marketplace based on your knowledge of:
1. Typical pricing patterns for this item type
2. Each marketplace's audience and pricing trends
3. Current market conditions

Respond ONLY in this exact format:

EBAY: $XX.XX
FACEBOOK: $XX.XX
AMAZON: $XX.XX
STOCKX: $XX.XX (or "N/A" if not suitable)
ETSY: $XX.XX (or "N/A" if not suitable)
MERCARI: $XX.XX
POSHMARK: $XX.XX (or "N/A" if not suitable)
DEPOP: $XX.XX (or "N/A" if not suitable)
RECOMMENDED: [marketplace name]
REASONING: [1-2 sentence explanation why this marketplace is best]
CONFIDENCE: HIGH/MEDIUM/LOW

Base your estimates on typical resale values, not retail prices. If a marketplace isn't suitable for this item type, use "N/A"."""


def bulk_item_messages(base64_image: str) -> list:
    return [
        {
            "role": "user",
            "content": [
                {"type": "text", "text": BULK_ITEM_ANALYSIS},
                {"type": "image_url", "image_url": {"url": image_data_url(base64_image)}},
            ],
        }
    ]


def price_research_messages(item_name: str, category: str) -> list:
    """Text-only request; price research never sends the photo."""
    prompt = PRICE_RESEARCH.format(item_name=item_name, category=category or "Unknown")
    return [{"role": "user", "content": prompt}]
