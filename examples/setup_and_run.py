"""
Setup local environment with a sample story and run the backend server.

This script:
1. Saves a sample story for a sample user in the LocalStoryRepository
2. Stores reading preferences for that user
3. Starts the FastAPI backend server

Run this before trying the WebSocket demo client (demo_reading_ws.py).
"""

import asyncio

from kidreads.application.api import app, controller
from kidreads.domain.entities import QuizQuestion, Story, UserPreferences

SAMPLE_USER_ID = "sample-reader"
SAMPLE_STORY_ID = 1700000000000


async def setup_sample_data():
    """Set up a sample story and preferences."""

    print("=" * 60)
    print("Setting up sample data...")
    print("=" * 60)

    story = Story(
        id=SAMPLE_STORY_ID,
        title="Pip the Puppy",
        text=(
            "Pip the puppy found a red ball. "
            "He took it to Dr. Rosa at the park. "
            "They played together until the sun went down."
        ),
        quiz=[
            QuizQuestion(
                question="What color was the ball?",
                options=["Red", "Blue", "Green"],
                answer="Red",
            ),
            QuizQuestion(
                question="Where did Pip go?",
                options=["The beach", "The park", "School"],
                answer="The park",
            ),
        ],
    )
    await controller.story_repository.save_story(SAMPLE_USER_ID, story)
    print(f"\n✓ Added story: {story.title}")
    print(f"  - Story ID: {story.id}")
    print(f"  - Sentences: {len(story.sentences)}")

    preferences = UserPreferences(voice="Leda", speaking_rate=0.9, story_length=1)
    await controller.preferences_provider.update_preferences(SAMPLE_USER_ID, preferences)
    print(f"\n✓ Stored preferences for {SAMPLE_USER_ID}: {preferences.model_dump()}")

    print("\n" + "=" * 60)
    print("Sample data setup complete!")
    print("=" * 60)
    print("\nYou can now:")
    print("1. Connect with WebSocket URL: ws://localhost:8000/ws")
    print(f"2. Use user_id: {SAMPLE_USER_ID}")
    print(f"3. Use story_id: {SAMPLE_STORY_ID}")
    print("\n" + "=" * 60 + "\n")


def run_server():
    """Run the FastAPI server."""
    import uvicorn

    # Setup sample data first
    asyncio.run(setup_sample_data())

    # Start the server
    print("Starting FastAPI server on http://localhost:8000")
    print("Press Ctrl+C to stop\n")

    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        log_level="info"
    )


if __name__ == "__main__":
    run_server()
