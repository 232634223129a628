"""World English Bible verses."""

VERSES = [
    ("I can do all things through Christ, who strengthens me.", "Philippians 4:13"),
    ("Whether therefore you eat, or drink, or whatever you do, do all to the glory of God.", "1 Corinthians 10:31"),
    ("For God didn't give us a spirit of fear, but of power, love, and self-control.", "2 Timothy 1:7"),
    ("Trust in Yahweh with all your heart, and don't lean on your own understanding.", "Proverbs 3:5"),
    ("In all your ways acknowledge him, and he will make your paths straight.", "Proverbs 3:6"),
    ("We know that all things work together for good for those who love God, for those who are called according to his purpose.", "Romans 8:28"),
    ("But seek first God's Kingdom and his righteousness; and all these things will be given to you as well.", "Matthew 6:33"),
    ("Yahweh is my shepherd; I shall lack nothing.", "Psalm 23:1"),
    ("Commit your deeds to Yahweh, and your plans shall succeed.", "Proverbs 16:3"),
    ("Cast your burden on Yahweh and he will sustain you. He will never allow the righteous to be moved.", "Psalm 55:22"),
    ("In nothing be anxious, but in everything, by prayer and petition with thanksgiving, let your requests be made known to God.", "Philippians 4:6"),
    ("And the peace of God, which surpasses all understanding, will guard your hearts and your thoughts in Christ Jesus.", "Philippians 4:7"),
    ("Yahweh's name is a strong tower: the righteous run to him, and are safe.", "Proverbs 18:10"),
    ("But those who wait for Yahweh will renew their strength. They will mount up with wings like eagles. They will run, and not be weary. They will walk, and not faint.", "Isaiah 40:31"),
    ("Also delight yourself in Yahweh, and he will give you the desires of your heart.", "Psalm 37:4"),
    ("Create in me a clean heart, O God. Renew a right spirit within me.", "Psalm 51:10"),
    ("Casting all your worries on him, because he cares for you.", "1 Peter 5:7"),
    ("Draw near to God, and he will draw near to you.", "James 4:8"),
    ("This is the day that Yahweh has made. We will rejoice and be glad in it!", "Psalm 118:24"),
    ("Yahweh bless you, and keep you.", "Numbers 6:24"),
    ("A gentle answer turns away wrath, but a harsh word stirs up anger.", "Proverbs 15:1"),
    ("A cheerful heart makes good medicine, but a crushed spirit dries up the bones.", "Proverbs 17:22"),
    ("For God so loved the world, that he gave his only born Son, that whoever believes in him should not perish, but have eternal life.", "John 3:16"),
    ("Come to me, all you who labor and are heavily burdened, and I will give you rest.", "Matthew 11:28"),
    ("And whatever you do, work heartily, as for the Lord, and not for men.", "Colossians 3:23"),
    ("No, in all these things, we are more than conquerors through him who loved us.", "Romans 8:37"),
    ("Rejoice in the Lord always! Again I will say, “Rejoice!”", "Philippians 4:4"),
    ("Set your mind on the things that are above, not on the things that are on the earth.", "Colossians 3:2"),
    ("Pray without ceasing.", "1 Thessalonians 5:17"),
    ("In everything give thanks, for this is the will of God in Christ Jesus toward you.", "1 Thessalonians 5:18"),
    ("Now faith is assurance of things hoped for, proof of things not seen.", "Hebrews 11:1"),
    ("Jesus Christ is the same yesterday, today, and forever.", "Hebrews 13:8"),
    ("But be doers of the word, and not only hearers, deluding your own selves.", "James 1:22"),
    ("Be subject therefore to God. But resist the devil, and he will flee from you.", "James 4:7"),
    ("We love him, because he first loved us.", "1 John 4:19"),
    ("Don't you be afraid, for I am with you. Don't be dismayed, for I am your God. I will strengthen you. Yes, I will help you. Yes, I will uphold you with the right hand of my righteousness.", "Isaiah 41:10"),
    ("Be still, and know that I am God. I will be exalted among the nations. I will be exalted in the earth.", "Psalm 46:10"),
    ("Don't let your heart be troubled. Believe in God. Believe also in me.", "John 14:1"),
]
