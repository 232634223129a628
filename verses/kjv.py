"""King James Version verses."""

VERSES = [
    ("I can do all things through Christ which strengtheneth me", "Philippians 4:13"),
    ("Whether therefore ye eat or drink or whatsoever ye do do all to the glory of God", "1 Corinthians 10:31"),
    ("For God hath not given us the spirit of fear but of power and of love and of a sound mind", "2 Timothy 1:7"),
    ("Trust in the Lord with all thine heart and lean not unto thine own understanding", "Proverbs 3:5"),
    ("In all thy ways acknowledge him and he shall direct thy paths", "Proverbs 3:6"),
    ("And we know that all things work together for good to them that love God to them who are the called according to his purpose", "Romans 8:28"),
    ("But seek ye first the kingdom of God and his righteousness and all these things shall be added unto you", "Matthew 6:33"),
    ("The Lord is my shepherd I shall not want", "Psalm 23:1"),
    ("Commit thy works unto the Lord and thy thoughts shall be established", "Proverbs 16:3"),
    ("The Lord is my light and my salvation whom shall I fear the Lord is the strength of my life of whom shall I be afraid", "Psalm 27:1"),
    ("Cast thy burden upon the Lord and he shall sustain thee he shall never suffer the righteous to be moved", "Psalm 55:22"),
    ("Be careful for nothing but in every thing by prayer and supplication with thanksgiving let your requests be made known unto God", "Philippians 4:6"),
    ("And the peace of God which passeth all understanding shall keep your hearts and minds through Christ Jesus", "Philippians 4:7"),
    ("The name of the Lord is a strong tower the righteous runneth into it and is safe", "Proverbs 18:10"),
    ("But they that wait upon the Lord shall renew their strength they shall mount up with wings as eagles they shall run and not be weary and they shall walk and not faint", "Isaiah 40:31"),
    ("Delight thyself also in the Lord and he shall give thee the desires of thine heart", "Psalm 37:4"),
    ("Create in me a clean heart O God and renew a right spirit within me", "Psalm 51:10"),
    ("Casting all your care upon him for he careth for you", "1 Peter 5:7"),
    ("Draw nigh to God and he will draw nigh to you", "James 4:8"),
    ("Let your light so shine before men that they may see your good works and glorify your Father which is in heaven", "Matthew 5:16"),
    ("This is the day which the Lord hath made we will rejoice and be glad in it", "Psalm 118:24"),
    ("The Lord bless thee and keep thee", "Numbers 6:24"),
    ("A soft answer turneth away wrath but grievous words stir up anger", "Proverbs 15:1"),
    ("A merry heart doeth good like a medicine but a broken spirit drieth the bones", "Proverbs 17:22"),
    ("For God so loved the world that he gave his only begotten Son that whosoever believeth in him should not perish but have everlasting life", "John 3:16"),
    ("Come unto me all ye that labour and are heavy laden and I will give you rest", "Matthew 11:28"),
    ("And whatsoever ye do do it heartily as to the Lord and not unto men", "Colossians 3:23"),
    ("Nay in all these things we are more than conquerors through him that loved us", "Romans 8:37"),
    ("Rejoice in the Lord alway and again I say Rejoice", "Philippians 4:4"),
    ("Set your affection on things above not on things on the earth", "Colossians 3:2"),
    ("Pray without ceasing", "1 Thessalonians 5:17"),
    ("In every thing give thanks for this is the will of God in Christ Jesus concerning you", "1 Thessalonians 5:18"),
    ("Now faith is the substance of things hoped for the evidence of things not seen", "Hebrews 11:1"),
    ("Jesus Christ the same yesterday and to day and for ever", "Hebrews 13:8"),
    ("If any of you lack wisdom let him ask of God that giveth to all men liberally and upbraideth not and it shall be given him", "James 1:5"),
    ("Wherefore my beloved brethren let every man be swift to hear slow to speak slow to wrath", "James 1:19"),
    ("But be ye doers of the word and not hearers only deceiving your own selves", "James 1:22"),
    ("Submit yourselves therefore to God Resist the devil and he will flee from you", "James 4:7"),
    ("Be sober be vigilant because your adversary the devil as a roaring lion walketh about seeking whom he may devour", "1 Peter 5:8"),
    ("We love him because he first loved us", "1 John 4:19"),
    ("Fear thou not for I am with thee be not dismayed for I am thy God I will strengthen thee yea I will help thee yea I will uphold thee with the right hand of my righteousness", "Isaiah 41:10"),
    ("Be still and know that I am God I will be exalted among the heathen I will be exalted in the earth", "Psalm 46:10"),
    ("Call unto me and I will answer thee and shew thee great and mighty things which thou knowest not", "Jeremiah 33:3"),
    ("Let not your heart be troubled ye believe in God believe also in me", "John 14:1"),
    ("Peace I leave with you my peace I give unto you not as the world giveth give I unto you Let not your heart be troubled neither let it be afraid", "John 14:27"),
]
