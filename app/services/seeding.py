"""Built-in civic simulations loaded into the catalog when no catalog file is configured."""

BUILTIN_SIMULATIONS = [
    {
        "id": "local-election",
        "title": "Local Election Campaign",
        "description": "Run for district mayor, from platform to election night.",
        "category": "voting",
        "difficulty_level": "beginner",
        "estimated_minutes": 10,
        # linear: every choice moves to the next step, the last one completes
        "steps": [
            {
                "step": 1,
                "title": "Campaign Launch",
                "description": "You're running for district mayor. Choose your campaign platform:",
                "image": "🏛️",
                "choices": [
                    {"id": "A", "text": "Focus on economic development and job creation", "points": 20,
                     "feedback": "Great choice! Economic issues resonate with many voters.",
                     "consequences": "Business community shows support"},
                    {"id": "B", "text": "Prioritize education and youth programs", "points": 25,
                     "feedback": "Excellent! Education is a key concern for families.",
                     "consequences": "Teachers union endorses your campaign"},
                    {"id": "C", "text": "Focus on infrastructure and public services", "points": 15,
                     "feedback": "Good approach, though voters want more specific plans.",
                     "consequences": "Mixed response from community leaders"},
                ],
            },
            {
                "step": 2,
                "title": "Campaign Funding",
                "description": "You need to raise funds for your campaign. What's your strategy?",
                "image": "💰",
                "choices": [
                    {"id": "A", "text": "Organize community fundraising events", "points": 30,
                     "feedback": "Perfect! Grassroots funding builds strong community support.",
                     "consequences": "High community engagement and trust"},
                    {"id": "B", "text": "Seek corporate sponsorships", "points": 10,
                     "feedback": "Corporate money raises questions about whose interests you'll serve.",
                     "consequences": "Opponents question your independence"},
                    {"id": "C", "text": "Use personal savings", "points": 15,
                     "feedback": "Self-funding avoids conflicts but limits your reach.",
                     "consequences": "Smaller but independent campaign"},
                ],
            },
            {
                "step": 3,
                "title": "Public Debate",
                "description": "Your opponent attacks your record in a televised debate. How do you respond?",
                "image": "🎤",
                "choices": [
                    {"id": "A", "text": "Respond with facts and redirect to your plans", "points": 30,
                     "feedback": "Staying on message with evidence earns voters' respect.",
                     "consequences": "Undecided voters lean your way"},
                    {"id": "B", "text": "Counterattack your opponent's record", "points": 10,
                     "feedback": "Negative exchanges often alienate undecided voters.",
                     "consequences": "Debate coverage focuses on the conflict"},
                    {"id": "C", "text": "Decline to respond", "points": 5,
                     "feedback": "Silence can look like you have something to hide.",
                     "consequences": "Attack goes unanswered in the press"},
                ],
            },
            {
                "step": 4,
                "title": "Voter Outreach",
                "description": "Turnout in your district is historically low. How do you reach voters?",
                "image": "🚪",
                "choices": [
                    {"id": "A", "text": "Door-to-door canvassing and town halls", "points": 25,
                     "feedback": "Personal contact is the most effective way to mobilize voters.",
                     "consequences": "Turnout rises in neglected neighbourhoods"},
                    {"id": "B", "text": "Social media advertising only", "points": 15,
                     "feedback": "Online ads reach many people but persuade few.",
                     "consequences": "High visibility, modest engagement"},
                    {"id": "C", "text": "Focus only on likely voters", "points": 10,
                     "feedback": "Efficient, but leaves many residents unheard.",
                     "consequences": "Turnout stays low"},
                ],
            },
            {
                "step": 5,
                "title": "Election Night",
                "description": "The results are close and a recount is possible. What do you do?",
                "image": "🗳️",
                "choices": [
                    {"id": "A", "text": "Wait for every vote to be counted and respect the result", "points": 30,
                     "feedback": "Respecting the process strengthens trust in democracy.",
                     "consequences": "Both sides accept the outcome"},
                    {"id": "B", "text": "Declare victory early", "points": 0,
                     "feedback": "Premature claims undermine confidence in elections.",
                     "consequences": "Tension rises among supporters"},
                    {"id": "C", "text": "Request a recount through official channels", "points": 20,
                     "feedback": "Recounts are a legitimate safeguard when margins are thin.",
                     "consequences": "The recount confirms the result"},
                ],
            },
        ],
    },
    {
        "id": "local-budget",
        "title": "Balancing the Town Budget",
        "description": "As a council member, allocate a tight municipal budget.",
        "category": "local_government",
        "difficulty_level": "intermediate",
        "estimated_minutes": 8,
        "steps": [
            {
                "step": 1,
                "title": "The Shortfall",
                "description": "The town faces a 5% revenue shortfall. Where do you start?",
                "image": "📊",
                "choices": [
                    {"id": "A", "text": "Hold public budget hearings first", "points_delta": 10,
                     "feedback": "Transparency builds public support for hard choices.", "next_step": 2},
                    {"id": "B", "text": "Cut the parks budget immediately", "points_delta": -5,
                     "feedback": "Unilateral cuts without input erode trust.", "next_step": 3},
                ],
            },
            {
                "step": 2,
                "title": "Residents Weigh In",
                "description": "Residents ask you to protect libraries and transit. How do you close the gap?",
                "image": "🏘️",
                "choices": [
                    {"id": "A", "text": "Phase small cuts across departments", "points_delta": 15,
                     "feedback": "Shared, gradual savings keep essential services running.", "next_step": 3},
                    {"id": "B", "text": "Propose a modest, time-limited levy", "points_delta": 20,
                     "feedback": "A transparent levy with a sunset clause is a sound compromise.",
                     "is_complete": True},
                ],
            },
            {
                "step": 3,
                "title": "Council Vote",
                "description": "The final budget goes to a council vote. How do you present it?",
                "image": "⚖️",
                "choices": [
                    {"id": "A", "text": "Publish the full budget and explain trade-offs", "points_delta": 10,
                     "feedback": "Open budgets let citizens hold the council accountable.",
                     "is_complete": True},
                    {"id": "B", "text": "Pass it quickly in a closed session", "points_delta": -10,
                     "feedback": "Closed sessions on budgets invite suspicion and legal challenges.",
                     "is_complete": True},
                ],
            },
        ],
    },
    {
        "id": "town-hall-petition",
        "title": "Petition for a Safer Crossing",
        "description": "Organize neighbours to get a pedestrian crossing near the school.",
        "category": "participation",
        "difficulty_level": "beginner",
        "estimated_minutes": 6,
        "steps": [
            {
                "step": 1,
                "title": "Finding Allies",
                "description": "Parents worry about traffic near the school. What is your first move?",
                "image": "🚸",
                "choices": [
                    {"id": "A", "text": "Collect signatures door to door", "points_delta": 20,
                     "feedback": "A petition documents community support.", "next_step": 2},
                    {"id": "B", "text": "Post complaints online", "points_delta": 5,
                     "feedback": "Venting online rarely reaches decision makers.", "next_step": 2},
                ],
            },
            {
                "step": 2,
                "title": "Town Hall Meeting",
                "description": "You get five minutes at the town hall meeting.",
                "image": "🏛️",
                "choices": [
                    {"id": "A", "text": "Present traffic data and the petition", "points_delta": 25,
                     "feedback": "Evidence plus public support is persuasive.", "next_step": 3},
                    {"id": "B", "text": "Demand immediate action", "points_delta": 10,
                     "feedback": "Urgency matters, but council needs a workable proposal.", "next_step": 3},
                ],
            },
            {
                "step": 3,
                "title": "Follow Up",
                "description": "The council refers the proposal to the transport committee.",
                "image": "📬",
                "choices": [
                    {"id": "A", "text": "Attend the committee session and offer to help", "points_delta": 20,
                     "feedback": "Staying engaged through the process gets results.", "is_complete": True},
                    {"id": "B", "text": "Assume it will be handled", "points_delta": 0,
                     "feedback": "Proposals often stall without follow-up.", "is_complete": True},
                ],
            },
        ],
    },
]
