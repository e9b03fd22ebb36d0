from langchain_core.prompts import ChatPromptTemplate

TONES = ["conversational", "professional", "inspirational", "practical", "expert", "casual"]
AUDIENCES = ["engaged couples", "brides-to-be", "grooms-to-be", "wedding planners", "general"]
CATEGORIES = [
    "venue planning",
    "budget advice",
    "vendor selection",
    "timeline planning",
    "decor ideas",
    "etiquette",
    "trends",
    "real weddings",
    "expert tips",
]

_FORMAT_BLOCK = (
    "Title: [Generate a clear, descriptive title]\n"
    "Author: [Host name(s), or \"Wedding Planning Expert\" if unclear]\n"
    "Summary: [2-3 sentence summary of the main topics and key takeaways]\n"
    "Tags: [Relevant wedding planning tags, comma-separated (e.g. \"venues, budget, timeline, flowers, catering\")]\n"
    f"Tone: [One of: {', '.join(TONES)}]\n"
    f"Audience: [One of: {', '.join(AUDIENCES)}]\n"
    f"Category: [One of: {', '.join(CATEGORIES)}]\n"
)


# Podcast transcript metadata prompt
podcast_metadata_prompt = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            (
                "You are a wedding planning expert who analyzes wedding podcast transcripts "
                "to generate accurate metadata for a wedding planning knowledge base.\n\n"
                "You will analyze the full transcript of a wedding podcast episode and extract "
                "metadata that will help engaged couples find the right advice for their wedding planning.\n\n"
                "Generate metadata in this EXACT format, one field per line:\n\n"
                + _FORMAT_BLOCK
                + "\nGuidelines:\n"
                "- Focus on actionable wedding planning advice and information\n"
                "- Include specific wedding-related keywords in tags\n"
                "- Keep tone accurate to the actual speaking style in the transcript\n"
                "- Make the summary helpful for couples searching for specific advice\n"
                "- Choose the most relevant category that represents the main focus\n"
                "- Extract the actual host/expert name if mentioned in the transcript\n"
            ),
        ),
        (
            "human",
            (
                "Analyze this wedding podcast transcript and generate metadata:\n\n"
                "TRANSCRIPT:\n{text}\n\n"
                "FILENAME: {filename}\n\n"
                "Generate the metadata following the exact format specified."
            ),
        ),
    ]
)


# Vendor directory metadata prompt
vendor_metadata_prompt = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            (
                "You are a wedding planning expert who catalogues wedding vendor directories "
                "for a wedding planning knowledge base.\n\n"
                "Generate metadata describing the vendor listing in this EXACT format, one field per line:\n\n"
                + _FORMAT_BLOCK
                + "\nUse \"Wedding Vendor Directory\" as the author unless a publisher is named.\n"
            ),
        ),
        (
            "human",
            (
                "Describe this wedding vendor listing:\n\n"
                "CONTENT:\n{text}\n\n"
                "FILENAME: {filename}\n\n"
                "Generate the metadata following the exact format specified."
            ),
        ),
    ]
)


# Central dictionary to register prompts
PROMPT_REGISTRY = {
    "podcast_metadata": podcast_metadata_prompt,
    "vendor_metadata": vendor_metadata_prompt,
}
